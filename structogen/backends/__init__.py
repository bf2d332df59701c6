"""
structogen.backends
===================

Target-language backends and their registry.

>>> get_backend("oberon").extensions
('Mod',)
"""

from __future__ import annotations

from typing import Dict, List, Type

from structogen.backends.base import Backend
from structogen.backends.bash import BashBackend, KshBackend
from structogen.backends.oberon import OberonBackend
from structogen.backends.pascal import PascalBackend
from structogen.errors import BackendError

__all__ = [
    "Backend",
    "BashBackend",
    "KshBackend",
    "OberonBackend",
    "PascalBackend",
    "BACKENDS",
    "get_backend",
    "available_backends",
    "register_backend",
]

BACKENDS: Dict[str, Type[Backend]] = {
    "bash": BashBackend,
    "ksh": KshBackend,
    "oberon": OberonBackend,
    "pascal": PascalBackend,
}


def register_backend(backend_class: Type[Backend]) -> Type[Backend]:
    """Register a backend class under its ``name``; usable as a decorator."""
    if not backend_class.name:
        raise ValueError(f"{backend_class.__name__} has no name")
    BACKENDS[backend_class.name.lower()] = backend_class
    return backend_class


def available_backends() -> List[str]:
    return sorted(BACKENDS)


def get_backend(name: str) -> Backend:
    """Instantiate the backend registered under *name* (case-insensitive)."""
    try:
        return BACKENDS[name.lower()]()
    except KeyError:
        raise BackendError(
            f"unknown backend {name!r}",
            hint=f"available backends: {', '.join(available_backends())}",
        ) from None
