"""
structogen/backends/base.py
===========================

The backend capability object.

A backend is mostly data: the indentation unit, the comment delimiters, the
I/O templates, an operator map, a type map, and one keyword template per
control construct.  Templates are tuples of lines formatted with
``str.format``; a line may be given as ``(depth, text)`` to emit it deeper
than the construct itself.  Placeholders:

=================  ================================================
Template           Placeholders
=================  ================================================
``IF_OPEN``        ``{cond}``
``CASE_OPEN``      ``{selector}``
``CASE_LABEL``     ``{labels}`` (joined with ``case_pattern_separator``)
``WHILE_OPEN``     ``{cond}``
``REPEAT_*``       ``{cond}``
for header/footer  ``{counter}`` ``{start}`` ``{end}`` ``{step}``
=================  ================================================

A handful of methods cover what does not fit a template: the jump
statements, input/output rendering, and the five routine hooks
(``generate_header``, ``generate_preamble``, ``generate_body``,
``generate_result``, ``generate_footer``), which receive the running
``CodeGenerator`` and emit through it.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from structogen.operators import mask_literals, unmask_literals

if TYPE_CHECKING:
    from structogen.codegen import CodeGenerator, RoutineInfo, Template
    from structogen.elements import Root

__all__ = ["Backend"]


class Backend:
    """Defaults shared by all backends; subclasses override data and hooks."""

    name: str = ""
    title: str = ""
    description: str = ""
    extensions: Tuple[str, ...] = ("txt",)

    indent_unit: str = "  "
    comment_left: str = "//"
    comment_right: str = ""

    #: replacement for the canonical assignment token " <- "
    assignment: str = " <- "
    statement_suffix: str = ""
    input_template: str = "input {expr}"
    output_template: str = "output {expr}"
    #: emit one output statement per value of a value list
    split_output_values: bool = False

    #: canonical token -> target spelling, applied in order outside literals
    OPERATOR_MAP: Dict[str, str] = {}
    #: lower-case source type name -> target type name
    TYPE_MAP: Dict[str, str] = {}
    UNKNOWN_TYPE: str = "???"

    #: the native break statement can leave the loops a ``leave`` names;
    #: without it, leaves jump to generated labels
    supports_simple_break: bool = True
    #: the native post-condition loop tests before the first iteration
    repeat_duplicates_body: bool = False

    case_pattern_separator: str = ", "
    case_body_depth: int = 2

    IF_OPEN: "Template" = ("if {cond}",)
    IF_ELSE: "Template" = ("else",)
    IF_CLOSE: "Template" = ("end",)
    CASE_OPEN: "Template" = ("case {selector}",)
    CASE_LABEL: "Template" = ("{labels}:",)
    CASE_LABEL_NEXT: "Template" = ("{labels}:",)
    CASE_BRANCH_CLOSE: "Template" = ()
    CASE_DEFAULT: "Template" = ("default:",)
    CASE_DEFAULT_CLOSE: "Template" = ()
    CASE_CLOSE: "Template" = ("end",)
    WHILE_OPEN: "Template" = ("while {cond}",)
    WHILE_CLOSE: "Template" = ("end",)
    REPEAT_OPEN: "Template" = ("repeat",)
    REPEAT_CLOSE: "Template" = ("until {cond}",)
    FOREVER_OPEN: "Template" = ("loop",)
    FOREVER_CLOSE: "Template" = ("end",)
    PARALLEL_OPEN: "Template" = ()
    PARALLEL_CLOSE: "Template" = ()
    THREAD_OPEN: "Template" = ()
    THREAD_CLOSE: "Template" = ()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    # --- text ---

    def comment(self, text: str) -> str:
        if self.comment_right:
            return f"{self.comment_left} {text} {self.comment_right}"
        return f"{self.comment_left} {text}"

    def statement(self, code: str) -> str:
        if not code or code.endswith(self.statement_suffix):
            return code
        return code + self.statement_suffix

    def transform_assignment(self, line: str) -> str:
        return line.replace(" <- ", self.assignment)

    def transform(self, line: str) -> str:
        """Map canonical operator tokens of an intermediate line."""
        if not self.OPERATOR_MAP:
            return line
        masked, literals = mask_literals(line)
        for canonical, target in self.OPERATOR_MAP.items():
            # adjacent tokens share their separating blank
            pattern = r"(?<= )" + re.escape(canonical.strip()) + r"(?= )"
            masked = re.sub(pattern, lambda m, spelling=target.strip(): spelling, masked)
        return unmask_literals(masked, literals)

    def lookup_type(self, name: str) -> Optional[str]:
        return self.TYPE_MAP.get(" ".join(name.lower().split()))

    # --- loops ---

    def for_header(self, step: int) -> "Template":
        return ("for {counter} <- {start} to {end} by {step}",)

    def for_footer(self, step: int) -> "Template":
        return ("end",)

    # --- statements ---

    def render_input(self, gen: "CodeGenerator", targets: Sequence[str]) -> List[str]:
        expr = ", ".join(targets)
        return [self.statement(self.input_template.format(expr=expr).strip())]

    def render_output(self, gen: "CodeGenerator", values: Sequence[str]) -> List[str]:
        if not values:
            return [self.statement(self.output_template.format(expr="").strip())]
        return [self.statement(self.output_template.format(expr=v)) for v in values]

    def render_break(self, levels: int) -> Optional[str]:
        """Native statement leaving *levels* loops, or None if impossible."""
        return self.statement("break") if levels == 1 else None

    def render_goto(self, label: int) -> str:
        return self.statement(f"goto {label}")

    def render_label(self, label: int) -> str:
        return f"{label}:"

    def render_return(self, value: str) -> str:
        return self.statement(f"return {value}".strip())

    def render_exit(self, value: str) -> str:
        return self.statement(f"exit {value}".strip())

    # --- routine hooks ---

    def generate_header(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        gen.emit_comments(root)

    def generate_preamble(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        pass

    def generate_body(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        gen.visit_block(root.children)

    def generate_result(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        pass

    def generate_footer(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        pass
