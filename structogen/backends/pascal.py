"""
structogen/backends/pascal.py
=============================

Pascal backend.

Standard Pascal has no ``break``, so every ``leave`` becomes a ``goto`` to
a numbered label placed right after the loop it leaves; the labels are
declared in the routine preamble.  Counting loops with a step other than
1 or -1 are rendered as ``while`` loops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from structogen.backends.base import Backend

if TYPE_CHECKING:
    from structogen.codegen import CodeGenerator, RoutineInfo, Template
    from structogen.elements import Root

__all__ = ["PascalBackend"]


class PascalBackend(Backend):
    name = "pascal"
    title = "Export Pascal Code ..."
    description = "Pascal / Delphi Source Code"
    extensions = ("pas", "dpr", "pp", "lpr")

    indent_unit = "  "
    comment_left = "{"
    comment_right = "}"

    assignment = " := "
    statement_suffix = ";"
    input_template = "readln({expr})"
    output_template = "writeln({expr})"

    OPERATOR_MAP = {
        " == ": " = ",
        " != ": " <> ",
        " && ": " and ",
        " || ": " or ",
        " ! ": " not ",
        " % ": " mod ",
        " << ": " shl ",
        " >> ": " shr ",
        " ^ ": " xor ",
    }
    TYPE_MAP = {
        "int": "integer",
        "integer": "integer",
        "unsigned": "cardinal",
        "unsigned int": "cardinal",
        "long": "longint",
        "unsigned long": "longword",
        "short": "smallint",
        "unsigned short": "word",
        "char": "char",
        "character": "char",
        "unsigned char": "byte",
        "float": "single",
        "single": "single",
        "real": "real",
        "double": "double",
        "longreal": "extended",
        "bool": "boolean",
        "boolean": "boolean",
        "string": "string",
    }
    UNKNOWN_TYPE = "{type?}"

    supports_simple_break = False

    case_pattern_separator = ", "
    case_body_depth = 2

    IF_OPEN = ("if {cond} then", "begin")
    IF_ELSE = ("end", "else", "begin")
    IF_CLOSE = ("end;",)
    CASE_OPEN = ("case {selector} of",)
    CASE_LABEL = ("{labels}:", "begin")
    CASE_LABEL_NEXT = ("{labels}:", "begin")
    CASE_BRANCH_CLOSE = ("end;",)
    CASE_DEFAULT = ("else", "begin")
    CASE_DEFAULT_CLOSE = ("end;",)
    CASE_CLOSE = ("end;",)
    WHILE_OPEN = ("while {cond} do", "begin")
    WHILE_CLOSE = ("end;",)
    REPEAT_OPEN = ("repeat",)
    REPEAT_CLOSE = ("until {cond};",)
    FOREVER_OPEN = ("while true do", "begin")
    FOREVER_CLOSE = ("end;",)
    PARALLEL_OPEN = ()
    PARALLEL_CLOSE = ()
    THREAD_OPEN = ("begin",)
    THREAD_CLOSE = ("end;",)

    def for_header(self, step: int) -> "Template":
        if step == 1:
            return ("for {counter} := {start} to {end} do", "begin")
        if step == -1:
            return ("for {counter} := {start} downto {end} do", "begin")
        test = "<=" if step > 0 else ">="
        return (
            "{counter} := {start};",
            "while {counter} " + test + " {end} do",
            "begin",
        )

    def for_footer(self, step: int) -> "Template":
        if step in (1, -1):
            return ("end;",)
        return ((1, "{counter} := {counter} + ({step});"), "end;")

    def render_goto(self, label: int) -> str:
        return f"goto {label};"

    def render_label(self, label: int) -> str:
        return f"{label}: ;"

    def render_return(self, value: str) -> str:
        return f"exit({value});" if value else "exit;"

    def render_exit(self, value: str) -> str:
        return f"halt({value});" if value else "halt;"

    def generate_header(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        if gen.options.include_comments:
            gen.emitter.emit_block_comment([line.strip() for line in root.comment], "{", "  ", "}")
        if info.is_program:
            gen.emit(f"program {info.name};")
            return
        keyword = "function" if info.is_function else "procedure"
        header = f"{keyword} {info.name}"
        if info.parameters:
            params = "; ".join(f"{p.name}: {gen.map_type(p.type)}" for p in info.parameters)
            header += f"({params})"
        if info.is_function:
            header += ": " + gen.map_type(info.result_type)
        gen.emit(header + ";")

    def generate_preamble(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        if info.labels:
            labels = ", ".join(str(n) for n in sorted(info.labels.values()))
            gen.emit(f"label {labels};")
        gen.emit_blank()
        if info.local_names:
            gen.emit("var")
            with gen.emitter.indented():
                gen.emit_comment("TODO: declare the types of the local variables:")
                for name in info.local_names:
                    gen.emit_comment(f"{name}: ...;")
            gen.emit_blank()
        gen.emit("begin")
        gen.emitter.indent()

    def generate_result(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        if info.is_program or info.always_returns:
            return
        if info.result_var and not info.is_function_name_set:
            gen.emit(f"{info.name} := {info.result_var};")

    def generate_footer(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        gen.emit("end." if info.is_program else "end;")
