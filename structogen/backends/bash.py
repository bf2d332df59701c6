"""
structogen/backends/bash.py
===========================

Shell backends: ``BashBackend`` and its Korn shell variant ``KshBackend``.

Notes
-----
* The shell's ``until`` loop tests *before* the first iteration, so a
  post-condition loop is rendered as one copy of the body followed by the
  ``until`` loop.
* ``break n`` leaves ``n`` nested loops natively.
* Conditions are emitted as written (no ``[ ... ]`` / ``(( ... ))``
  wrapping); the generated script is a starting point, not a finished one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from structogen.backends.base import Backend

if TYPE_CHECKING:
    from structogen.codegen import CodeGenerator, RoutineInfo, Template
    from structogen.elements import Root

__all__ = ["BashBackend", "KshBackend"]


class BashBackend(Backend):
    name = "bash"
    title = "Export BASH Code ..."
    description = "BASH Source Code"
    extensions = ("sh",)

    indent_unit = " "
    comment_left = "#"
    comment_right = ""

    assignment = "="
    input_template = "read {expr}"
    output_template = "echo {expr}"

    OPERATOR_MAP = {
        " div ": " / ",
    }
    # used for "declare" flags of typed parameters
    TYPE_MAP = {
        "int": "-i",
        "integer": "-i",
        "long": "-i",
        "short": "-i",
        "unsigned": "-i",
        "unsigned int": "-i",
    }

    supports_simple_break = True
    repeat_duplicates_body = True

    case_pattern_separator = "|"
    case_body_depth = 2

    IF_OPEN = ("if {cond}", "then")
    IF_ELSE = ("else",)
    IF_CLOSE = ("fi",)
    CASE_OPEN = ("case {selector} in",)
    CASE_LABEL = ("{labels})",)
    CASE_LABEL_NEXT = ("{labels})",)
    CASE_BRANCH_CLOSE = (";;",)
    CASE_DEFAULT = ("*)",)
    CASE_DEFAULT_CLOSE = (";;",)
    CASE_CLOSE = ("esac",)
    WHILE_OPEN = ("while {cond}", "do")
    WHILE_CLOSE = ("done",)
    REPEAT_OPEN = ("until {cond}", "do")
    REPEAT_CLOSE = ("done",)
    FOREVER_OPEN = ("while true", "do")
    FOREVER_CLOSE = ("done",)
    THREAD_OPEN = ("{{",)
    THREAD_CLOSE = ("}}",)

    shebang = "#!/bin/bash"

    def for_header(self, step: int) -> "Template":
        if step == 1:
            incr, test = "{counter}++", "<="
        elif step == -1:
            incr, test = "{counter}--", ">="
        else:
            incr, test = "{counter}+=({step})", "<=" if step > 0 else ">="
        return ("for (({counter}={start}; {counter}" + test + "{end}; " + incr + "))", "do")

    def for_footer(self, step: int) -> "Template":
        return ("done",)

    def render_break(self, levels: int) -> Optional[str]:
        return "break" if levels == 1 else f"break {levels}"

    def generate_header(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        gen.emit(self.shebang)
        gen.emit_blank()
        gen.emit_comments(root)
        gen.emit_comment("(generated by structogen)")
        if not info.is_program:
            gen.emit(f"{info.name}() {{")
            gen.emitter.indent()
            for i, param in enumerate(info.parameters, start=1):
                flag = self.lookup_type(param.type) if param.type else None
                if flag:
                    gen.emit(f"declare {flag} {param.name}=${i}")
                else:
                    gen.emit(f"{param.name}=${i}")
        gen.emit_blank()

    def generate_result(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        # Shell functions return a status only; hand a value back on stdout.
        if info.is_function and not info.always_returns and not info.is_program:
            value = info.result_var or (info.name if info.is_function_name_set else None)
            if value:
                gen.emit(f"echo ${value}")

    def generate_footer(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        if not info.is_program:
            gen.emit("}")


class KshBackend(BashBackend):
    name = "ksh"
    title = "Export KSH Code ..."
    description = "KSH Source Code"
    extensions = ("ksh",)

    shebang = "#!/usr/bin/ksh"
