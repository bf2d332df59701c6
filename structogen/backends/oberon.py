"""
structogen/backends/oberon.py
=============================

Oberon backend.

Input and output go through the ``In`` / ``Out`` modules; the data type of
the operand is unknown, so ``TYPE`` is left in place for the user to
replace (a TODO comment says so).  ``EXIT`` leaves exactly one ``LOOP``;
leaving several loops at once is reported and left as a TODO.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from structogen.backends.base import Backend

if TYPE_CHECKING:
    from structogen.codegen import CodeGenerator, RoutineInfo, Template
    from structogen.elements import Root

__all__ = ["OberonBackend"]


class OberonBackend(Backend):
    name = "oberon"
    title = "Export Oberon Code ..."
    description = "Oberon Source Code"
    extensions = ("Mod",)

    indent_unit = "  "
    comment_left = "(*"
    comment_right = "*)"

    assignment = " := "
    statement_suffix = ";"
    input_template = "In.TYPE({expr})"
    output_template = "Out.TYPE({expr})"
    split_output_values = True

    OPERATOR_MAP = {
        " == ": " = ",
        " != ": " # ",
        " div ": " DIV ",
        " % ": " MOD ",
        " && ": " & ",
        " || ": " OR ",
        " ! ": " ~ ",
    }
    TYPE_MAP = {
        "long": "LONGINT",
        "unsigned long": "LONGINT",
        "int": "INTEGER",
        "integer": "INTEGER",
        "unsigned": "INTEGER",
        "unsigned int": "INTEGER",
        "short": "SHORTINT",
        "unsigned short": "SHORTINT",
        "unsigned char": "SHORTINT",
        "char": "CHAR",
        "character": "CHAR",
        "float": "REAL",
        "single": "REAL",
        "real": "REAL",
        "double": "LONGREAL",
        "longreal": "LONGREAL",
        "bool": "BOOLEAN",
        "boolean": "BOOLEAN",
        "string": "ARRAY 100 OF CHAR",
    }
    UNKNOWN_TYPE = "(*type?*)"

    supports_simple_break = True

    case_pattern_separator = ", "
    case_body_depth = 2

    IF_OPEN = ("IF {cond} THEN",)
    IF_ELSE = ("ELSE",)
    IF_CLOSE = ("END;",)
    CASE_OPEN = ("CASE {selector} OF",)
    CASE_LABEL = ("{labels}:",)
    CASE_LABEL_NEXT = ("| {labels}:",)
    CASE_DEFAULT = ("ELSE",)
    CASE_CLOSE = ("END;",)
    WHILE_OPEN = ("WHILE {cond} DO",)
    WHILE_CLOSE = ("END;",)
    REPEAT_OPEN = ("REPEAT",)
    REPEAT_CLOSE = ("UNTIL {cond};",)
    FOREVER_OPEN = ("LOOP",)
    FOREVER_CLOSE = ("END;",)
    PARALLEL_OPEN = ("BEGIN",)
    PARALLEL_CLOSE = ("END;",)
    THREAD_OPEN = ("BEGIN",)
    THREAD_CLOSE = ("END;",)

    def for_header(self, step: int) -> "Template":
        by = "" if step == 1 else " BY {step}"
        return ("FOR {counter} := {start} TO {end}" + by + " DO",)

    def for_footer(self, step: int) -> "Template":
        return ("END;",)

    def render_input(self, gen: "CodeGenerator", targets: Sequence[str]) -> List[str]:
        lines = ["In.Open;"]
        if not targets:
            lines.append("In.Char(dummyInputChar);")
        else:
            lines.append(self.comment('TODO: Replace "TYPE" by the actual data type name!'))
            lines.extend(self.statement(self.input_template.format(expr=t)) for t in targets)
        return lines

    def render_output(self, gen: "CodeGenerator", values: Sequence[str]) -> List[str]:
        lines = []
        if values:
            lines.append(self.comment(
                'TODO: Replace "TYPE" by the actual data type name '
                "and add a length argument where needed!"))
            lines.extend(self.statement(self.output_template.format(expr=v)) for v in values)
        lines.append("Out.Ln;")
        return lines

    def render_break(self, levels: int) -> Optional[str]:
        return "EXIT;" if levels == 1 else None

    def render_return(self, value: str) -> str:
        return self.statement(f"RETURN {value}".strip())

    def render_exit(self, value: str) -> str:
        return self.statement(f"HALT({value or 0})")

    def _parameter_list(self, gen: "CodeGenerator", info: "RoutineInfo") -> str:
        groups: List[List[str]] = []
        last_type = None
        for param in info.parameters:
            type_name = gen.map_type(param.type)
            if groups and type_name == last_type and type_name != self.UNKNOWN_TYPE:
                groups[-1].append(param.name)
            else:
                groups.append([type_name, param.name])
            last_type = type_name
        return "; ".join(", ".join(g[1:]) + ": " + g[0] for g in groups)

    def generate_header(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        if info.is_program:
            gen.emit(f"MODULE {info.name};")
            gen.emit("IMPORT In, Out;")
        else:
            header = f"PROCEDURE {info.name}*"
            if info.parameters:
                header += f"({self._parameter_list(gen, info)})"
            if info.is_function:
                header += ": " + gen.map_type(info.result_type)
            gen.emit(header + ";")
        if gen.options.include_comments:
            gen.emitter.emit_block_comment(
                [line.strip() for line in root.comment], self.comment_left, " * ", " " + self.comment_right
            )

    def generate_preamble(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        gen.emit("VAR")
        with gen.emitter.indented():
            gen.emit_comment("TODO: Declare and initialise local variables here:")
            gen.emit("dummyInputChar: CHAR; " + self.comment("for void input"))
            for name in info.local_names:
                gen.emit_comment(name)
        gen.emit("BEGIN")
        gen.emitter.indent()

    def generate_result(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        if info.is_program or not info.is_function or info.always_returns:
            return
        if info.is_function_name_set:
            result = info.name
        elif info.result_var:
            result = info.result_var
        else:
            result = "0"
        gen.emit_blank()
        gen.emit(f"RETURN {result};")

    def generate_footer(self, gen: "CodeGenerator", root: "Root", info: "RoutineInfo") -> None:
        gen.emit(f"END {info.name}" + ("." if info.is_program else ";"))
