"""
structogen/config.py
====================

Settings consumed by the export pipeline.

``MarkerConfig``
    The control-flow keyword strings of the notation the diagram text was
    written in.  They are user-customisable in the diagram editor, so the
    intermediate builder and the generator never hard-code them.

``GeneratorOptions``
    Export switches (verbatim export, instructions as comments, ...).

``Settings``
    Both of the above, loadable from a JSON file::

        {
            "markers": {"pre_while": "while (", "post_while": ")"},
            "options": {"include_comments": false}
        }

A settings object must not change while a generation run is in progress;
between runs it may be replaced freely.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from structogen.errors import ConfigError, ErrorCodes

__all__ = [
    "MarkerConfig",
    "GeneratorOptions",
    "Settings",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkerConfig:
    """Prefix / infix / postfix keywords per control-flow construct."""

    pre_alt: str = ""
    post_alt: str = ""
    pre_case: str = ""
    post_case: str = ""
    pre_for: str = "for"
    post_for: str = "to"
    step_for: str = "by"
    pre_while: str = "while"
    post_while: str = ""
    pre_repeat: str = "until"
    post_repeat: str = ""
    pre_leave: str = "leave"
    pre_return: str = "return"
    pre_exit: str = "exit"
    input: str = "read"
    output: str = "write"

    def prefix_markers(self) -> List[str]:
        """Non-empty prefix markers stripped by the intermediate builder."""
        return _by_length([self.pre_alt, self.pre_case, self.pre_while, self.pre_repeat])

    def postfix_markers(self) -> List[str]:
        """Non-empty postfix markers stripped by the intermediate builder."""
        return _by_length([self.post_alt, self.post_case, self.post_while, self.post_repeat])

    def redundant_markers(self) -> List[str]:
        # The counting-loop markers are left alone: For elements take their
        # clause apart by themselves.
        return _by_length(self.prefix_markers() + self.postfix_markers())

    def jump_keywords(self) -> Dict[str, str]:
        return {
            "leave": self.pre_leave.strip(),
            "return": self.pre_return.strip(),
            "exit": self.pre_exit.strip(),
        }

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        for kind, keyword in self.jump_keywords().items():
            if not keyword:
                warnings.append(f"{kind} keyword is empty; such jumps will not be recognised")
        if self.input.strip() and self.input.strip() == self.output.strip():
            warnings.append("input and output keywords are identical")
        if not self.post_for.strip():
            warnings.append("post_for is empty; For clauses cannot be decomposed")
        return warnings

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarkerConfig":
        return cls(**_checked(cls, data, "markers"))


@dataclass(frozen=True)
class GeneratorOptions:
    """Export switches."""

    #: emit element text exactly as written, skipping the intermediate pipeline
    no_conversion: bool = False
    #: export instruction, call and jump lines as comments only
    instructions_as_comments: bool = False
    #: emit element comments
    include_comments: bool = True
    #: indentation prefix of the outermost level
    indent: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeneratorOptions":
        return cls(**_checked(cls, data, "options"))


@dataclass(frozen=True)
class Settings:
    markers: MarkerConfig = field(default_factory=MarkerConfig)
    options: GeneratorOptions = field(default_factory=GeneratorOptions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        unknown = set(data) - {"markers", "options"}
        if unknown:
            raise ConfigError(
                f"unknown settings section(s): {', '.join(sorted(unknown))}",
                code=ErrorCodes.UNKNOWN_SETTING,
            )
        settings = cls(
            markers=MarkerConfig.from_dict(data.get("markers", {})),
            options=GeneratorOptions.from_dict(data.get("options", {})),
        )
        for warning in settings.markers.validate():
            logger.warning("MarkerConfig: %s", warning)
        return settings

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Settings":
        """Read settings from a JSON file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"cannot read settings file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path}:{e.lineno}:{e.colno}: {e.msg}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: settings must be a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {"markers": asdict(self.markers), "options": asdict(self.options)}


def _by_length(markers: List[str]) -> List[str]:
    unique = []
    for marker in markers:
        if marker and marker not in unique:
            unique.append(marker)
    return sorted(unique, key=len, reverse=True)


def _checked(cls: type, data: Mapping[str, Any], section: str) -> Dict[str, Any]:
    known = {f.name: f for f in fields(cls)}
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(
                f"unknown {section} setting {key!r}",
                code=ErrorCodes.UNKNOWN_SETTING,
                hint=f"known settings: {', '.join(sorted(known))}",
            )
        expected = type(known[key].default)
        if not isinstance(value, expected):
            raise ConfigError(
                f"{section}.{key} must be of type {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        result[key] = value
    return result
