# structogen/errors.py
"""
Error Types and Diagnostic Reporting
====================================

Error handling for the diagram-to-source export pipeline.

Two kinds of problems exist:

* **Hard failures** raise a ``StructogenError`` subclass.  They are limited
  to broken inputs: an unreadable settings file, a malformed diagram file,
  a structurally invalid element tree, or an unknown backend name.

* **Local recoveries** never interrupt code generation.  The generator
  substitutes a sensible fallback (step 1 for a malformed loop step, a
  placeholder for an unmapped type name, the plain line for an unknown jump
  keyword, ...), logs a warning and records a ``Diagnostic`` in the
  ``DiagnosticCollector`` owned by the current generation run.

Error Codes:
────────────
Each code follows the pattern SG-NNNN:
  - 0001-0999: Configuration errors
  - 1000-1999: Diagram file errors
  - 2000-2999: Diagram structure errors
  - 4000-4999: Code generation recoveries
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Iterator, List, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# SEVERITY AND CODES
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels, most severe first."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other: "ErrorSeverity") -> bool:
        order = [
            ErrorSeverity.INFO,
            ErrorSeverity.WARNING,
            ErrorSeverity.ERROR,
            ErrorSeverity.FATAL,
        ]
        return order.index(self) < order.index(other)

    def is_error(self) -> bool:
        return self in (ErrorSeverity.FATAL, ErrorSeverity.ERROR)


class ErrorCode:
    """A structured ``SG-NNNN`` error code."""

    __slots__ = ("number", "name", "default_severity")

    def __init__(
        self,
        number: int,
        name: str,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.number = number
        self.name = name
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        return f"SG-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.name})"

    def __hash__(self) -> int:
        return hash(self.number)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    # Configuration (0001-0999)
    INVALID_SETTINGS = ErrorCode(1, "invalid-settings")
    UNKNOWN_SETTING = ErrorCode(2, "unknown-setting")

    # Diagram files (1000-1999)
    MALFORMED_SEXP = ErrorCode(1000, "malformed-sexp")
    UNKNOWN_ELEMENT = ErrorCode(1001, "unknown-element")
    BAD_ELEMENT_FORM = ErrorCode(1002, "bad-element-form")

    # Diagram structure (2000-2999)
    CASE_ARITY = ErrorCode(2000, "case-arity")
    CYCLIC_TREE = ErrorCode(2001, "cyclic-tree")

    # Code generation recoveries (4000-4999)
    UNKNOWN_BACKEND = ErrorCode(4000, "unknown-backend")
    MALFORMED_STEP = ErrorCode(4001, "malformed-step", ErrorSeverity.WARNING)
    ZERO_STEP = ErrorCode(4002, "zero-step", ErrorSeverity.WARNING)
    MALFORMED_FOR_CLAUSE = ErrorCode(4003, "malformed-for-clause", ErrorSeverity.WARNING)
    UNMAPPED_TYPE = ErrorCode(4004, "unmapped-type", ErrorSeverity.WARNING)
    UNRECOGNIZED_JUMP = ErrorCode(4005, "unrecognized-jump", ErrorSeverity.WARNING)
    LEAVE_OUTSIDE_LOOP = ErrorCode(4006, "leave-outside-loop", ErrorSeverity.WARNING)
    UNSUPPORTED_LEAVE = ErrorCode(4007, "unsupported-leave", ErrorSeverity.WARNING)

    INTERNAL_ERROR = ErrorCode(9000, "internal-error", ErrorSeverity.FATAL)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class StructogenError(Exception):
    """Base exception for all structogen errors."""

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None, hint: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.hint = hint

    def to_gcc_format(self) -> str:
        line = f"error: {self.message} [{self.code}]"
        if self.hint:
            line += f"\nhint: {self.hint}"
        return line


class ConfigError(StructogenError):
    """Settings could not be read or contain invalid values."""

    default_code = ErrorCodes.INVALID_SETTINGS


class DiagramError(StructogenError):
    """Base class for problems with the element tree or its file form."""

    default_code = ErrorCodes.BAD_ELEMENT_FORM


class DiagramSyntaxError(DiagramError):
    """A diagram file is not a well-formed S-expression diagram."""

    default_code = ErrorCodes.MALFORMED_SEXP


class InvalidDiagramError(DiagramError):
    """The element tree violates a structural invariant."""

    default_code = ErrorCodes.CASE_ARITY


class BackendError(StructogenError):
    """No backend is registered under the requested name."""

    default_code = ErrorCodes.UNKNOWN_BACKEND


# ═══════════════════════════════════════════════════════════════════════════════
# DIAGNOSTICS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Diagnostic:
    """One recorded local recovery."""

    code: ErrorCode
    message: str
    element: str = ""
    severity: Optional[ErrorSeverity] = None

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def to_gcc_format(self) -> str:
        where = f"{self.element}: " if self.element else ""
        return f"{where}{self.severity.value}: {self.message} [{self.code}]"

    def __str__(self) -> str:
        return self.to_gcc_format()


@dataclass
class DiagnosticCollector:
    """Collects the diagnostics of one generation run."""

    diagnostics: List[Diagnostic] = field(default_factory=list)

    def report(self, code: ErrorCode, message: str, element: str = "") -> Diagnostic:
        diag = Diagnostic(code=code, message=message, element=element)
        self.diagnostics.append(diag)
        return diag

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def has_errors(self) -> bool:
        return any(d.severity.is_error() for d in self.diagnostics)

    def by_code(self, code: ErrorCode) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]
