# tests/test_codegen.py
"""
Tests for the backend-independent generator: emitter, jump analysis,
render steps, options and recorded diagnostics.
"""

import logging

import pytest

from structogen import elements as E
from structogen.backends import BashBackend, OberonBackend, PascalBackend
from structogen.codegen import (
    CodeEmitter,
    CodeGenerator,
    GeneratedCode,
    analyze_routine,
    classify_jump,
    generate,
)
from structogen.config import MarkerConfig, Settings
from structogen.errors import BackendError, ErrorCodes
from tests.conftest import make_gen


class TestCodeEmitter:

    def test_indentation(self):
        emitter = CodeEmitter("  ")
        emitter.emit("a")
        with emitter.indented():
            emitter.emit("b")
            emitter.emit("c", extra=1)
        emitter.emit("d")
        assert emitter.get_lines() == ["a", "  b", "    c", "d"]

    def test_base_indent(self):
        emitter = CodeEmitter(" ", base_indent=">>")
        emitter.indent()
        emitter.emit("x")
        assert emitter.get_code() == ">> x"

    def test_blank_lines_carry_no_indent(self):
        emitter = CodeEmitter("  ")
        emitter.indent(2)
        emitter.emit("   ")
        emitter.emit_blank()
        assert emitter.get_lines() == ["", ""]

    def test_dedent_never_negative(self):
        emitter = CodeEmitter()
        emitter.dedent(3)
        assert emitter.level == 0

    def test_block_comment(self):
        emitter = CodeEmitter()
        emitter.emit_block_comment(["one", ""], "(*", " * ", " *)")
        assert emitter.get_lines() == ["(*", " * one", " *", " *)"]


class TestGeneratedCode:

    def test_write_to_file(self, tmp_path):
        code = GeneratedCode(["a", "b"], "bash", "sh", "t", "d")
        path = tmp_path / "out.sh"
        code.write_to_file(str(path))
        assert path.read_text(encoding="utf-8") == "a\nb\n"
        assert code.text == "a\nb"


class TestClassifyJump:

    @pytest.mark.parametrize("line, kind, argument", [
        ("leave", "leave", ""),
        ("leave 2", "leave", "2"),
        ("", "leave", ""),
        ("return x + 1", "return", "x + 1"),
        ("return", "return", ""),
        ("exit 3", "exit", "3"),
        ("leaves", None, "leaves"),
        ("goto 10", None, "goto 10"),
    ])
    def test_default_keywords(self, markers, line, kind, argument):
        assert classify_jump(line, markers) == (kind, argument)

    def test_custom_keywords(self):
        cfg = MarkerConfig(pre_leave="break", pre_return="give back")
        assert classify_jump("give back 5", cfg) == ("return", "5")
        assert classify_jump("break", cfg) == ("leave", "")


class TestRoutineAnalysis:

    def test_function_by_return_value(self, markers):
        root = E.Root("f", is_program=False, children=[E.Jump("return 1")])
        info = analyze_routine(root, markers, label_leaves=False)
        assert info.returns and info.always_returns and info.is_function

    def test_procedure(self, markers):
        root = E.Root("p(a)", is_program=False, children=[E.Instruction("a <- 1")])
        info = analyze_routine(root, markers, label_leaves=False)
        assert not info.is_function
        assert info.local_names == []

    def test_result_variable(self, markers):
        root = E.Root("f", is_program=False, children=[E.Instruction("Result <- 2")])
        info = analyze_routine(root, markers, label_leaves=False)
        assert info.result_var == "Result"
        assert info.is_function

    def test_function_name_assigned(self, markers):
        root = E.Root("f", is_program=False, children=[E.Instruction("f <- 2")])
        assert analyze_routine(root, markers, label_leaves=False).is_function_name_set

    def test_labels_for_left_loops(self, markers):
        inner = E.While("while b", body=[E.Jump("leave 2")])
        outer = E.Forever(body=[inner, E.Jump("leave")])
        root = E.Root(children=[outer])
        info = analyze_routine(root, markers, label_leaves=True)
        assert info.labels == {id(outer): 1}

    def test_no_labels_with_native_break(self, markers):
        root = E.Root(children=[E.Forever(body=[E.Jump("leave")])])
        assert analyze_routine(root, markers, label_leaves=False).labels == {}


class TestAlternativeScenario:

    def test_exact_shell_output(self, bash_gen):
        alt = E.Alternative("x > 0", q_true=[E.Instruction("y <- 1")])
        assert bash_gen.render(alt) == ["if x > 0", "then", " y=1", "fi"]

    def test_else_branch(self, bash_gen):
        alt = E.Alternative("x > 0", q_true=[E.Instruction("y <- 1")],
                            q_false=[E.Instruction("y <- 0")])
        assert bash_gen.render(alt) == ["if x > 0", "then", " y=1", "else", " y=0", "fi"]

    def test_multi_line_condition(self, bash_gen):
        alt = E.Alternative(["a > 0", "and b > 0"], q_true=[E.Call("f")])
        assert bash_gen.render(alt)[0] == "if a > 0 && b > 0"


class TestCaseDefault:

    def test_wildcard_suppresses_default(self, bash_gen):
        case = E.Case(["x", "1, 2", "%"], branches=[[E.Instruction("y <- 1")], []])
        lines = bash_gen.render(case)
        assert lines == ["case x in", " 1|2)", "  y=1", " ;;", "esac"]
        assert "*)" not in " ".join(lines)

    def test_default_branch(self, bash_gen):
        case = E.Case(["x", "1", "other"], branches=[[E.Instruction("y <- 1")],
                                                     [E.Instruction("y <- 2")]])
        assert bash_gen.render(case) == [
            "case x in", " 1)", "  y=1", " ;;", " *)", "  y=2", " ;;", "esac",
        ]

    @pytest.mark.parametrize("backend", [BashBackend(), OberonBackend(), PascalBackend()],
                             ids=["bash", "oberon", "pascal"])
    def test_no_default_in_any_backend(self, backend):
        case = E.Case(["x", "1", "%"], branches=[[E.Instruction("y <- 1")], [E.Instruction("z <- 9")]])
        lines = CodeGenerator(backend).render(case)
        assert not any("z" in line for line in lines)


class TestLeave:

    def test_native_multi_level_break(self, bash_gen):
        loop = E.Forever(body=[E.Forever(body=[E.Jump("leave 2")])])
        assert bash_gen.render(loop) == [
            "while true", "do", " while true", " do", "  break 2", " done", "done",
        ]

    def test_empty_jump_leaves_one_loop(self, bash_gen):
        loop = E.Forever(body=[E.Jump()])
        assert "break" in [line.strip() for line in bash_gen.render(loop)]

    def test_leave_outside_loop(self, bash_gen):
        lines = bash_gen.render(E.Jump("leave"))
        assert lines == ["# FIXME: leave"]
        assert bash_gen.diagnostics.by_code(ErrorCodes.LEAVE_OUTSIDE_LOOP)

    def test_leave_more_loops_than_enclosing(self, bash_gen):
        lines = bash_gen.render(E.Forever(body=[E.Jump("leave 3")]))
        assert " break" in lines
        assert bash_gen.diagnostics.by_code(ErrorCodes.LEAVE_OUTSIDE_LOOP)


class TestJumps:

    def test_unrecognized_jump_is_plain_statement(self, bash_gen):
        assert bash_gen.render(E.Jump("goto 10")) == ["goto 10"]
        assert bash_gen.diagnostics.by_code(ErrorCodes.UNRECOGNIZED_JUMP)

    def test_warning_is_logged(self, bash_gen, caplog):
        with caplog.at_level(logging.WARNING, logger="structogen"):
            bash_gen.render(E.Jump("goto 10"))
        assert "SG-4005" in caplog.text

    def test_return_and_exit(self, bash_gen):
        lines = bash_gen.render(E.Jump(["return x", "exit 1"]))
        assert lines == ["return x", "exit 1"]


class TestOptions:

    def test_instructions_as_comments(self):
        gen = make_gen(BashBackend(), instructions_as_comments=True)
        assert gen.render(E.Instruction("x <- 1")) == ["# x <- 1"]

    def test_render_as_comment_covers_descendants(self, bash_gen):
        alt = E.Alternative("c", q_true=[E.Instruction("a <- 1")], render_as_comment=True)
        assert bash_gen.render(alt) == ["# c", "# a <- 1"]

    @pytest.mark.parametrize("element, expected", [
        (E.While("while x > 0", body=[E.Instruction("y <- 1")], render_as_comment=True),
         ["# while x > 0", "# y <- 1"]),
        (E.Case(["c", "1", "%"], branches=[[E.Call("f")], []], render_as_comment=True),
         ["# c", "# 1", "# %", "# f"]),
        (E.Forever(body=[E.Jump("leave")], render_as_comment=True),
         ["# leave"]),
        (E.Parallel(threads=[[E.Instruction("a <- 1")]], render_as_comment=True),
         ["# a <- 1"]),
    ])
    def test_render_as_comment_any_kind(self, bash_gen, element, expected):
        assert bash_gen.render(element) == expected

    def test_commented_loop_needs_no_label(self):
        loop = E.While("while x", body=[E.Jump("leave")], render_as_comment=True)
        code = generate(E.Root("P", children=[loop]), "pascal")
        assert code.lines == ["program P;", "", "begin", "  { while x }", "  { leave }", "end."]

    def test_no_conversion(self):
        gen = make_gen(BashBackend(), no_conversion=True)
        assert gen.render(E.Instruction("x := 1")) == ["x := 1"]

    def test_comments_emitted(self, bash_gen):
        assert bash_gen.render(E.Instruction("x <- 1", comment="set x")) == ["# set x", "x=1"]

    def test_comments_suppressed(self):
        gen = make_gen(BashBackend(), include_comments=False)
        assert gen.render(E.Instruction("x <- 1", comment="set x")) == ["x=1"]

    def test_initial_indent(self):
        gen = make_gen(BashBackend(), indent="    ")
        assert gen.render(E.Instruction("x <- 1")) == ["    x=1"]


class TestForDiagnostics:

    def test_malformed_step_reported(self, bash_gen):
        lines = bash_gen.render(E.For("for i <- 1 to 10 by x"))
        assert lines[0] == "for ((i=1; i<=10; i++))"
        assert bash_gen.diagnostics.by_code(ErrorCodes.MALFORMED_STEP)

    def test_zero_step_reported(self, bash_gen):
        bash_gen.render(E.For("for i <- 1 to 10 by 0"))
        [diag] = bash_gen.diagnostics.by_code(ErrorCodes.ZERO_STEP)
        assert diag.element.startswith("for")

    def test_unparseable_clause_passes_raw_text(self, bash_gen):
        lines = bash_gen.render(E.For("ten times"))
        assert "ten times" in lines[0]
        assert bash_gen.diagnostics.by_code(ErrorCodes.MALFORMED_FOR_CLAUSE)


class TestGenerate:

    def test_by_backend_name(self):
        code = generate(E.Root(children=[E.Instruction("x <- 1")]), "pascal")
        assert code.backend == "pascal"
        assert code.extension == "pas"
        assert code.lines[-1] == "end."

    def test_unknown_backend(self):
        with pytest.raises(BackendError):
            generate(E.Root(), "cobol")

    def test_diagnostics_exposed(self):
        root = E.Root(children=[E.Jump("goto 1")])
        code = generate(root, BashBackend())
        assert [d.code for d in code.diagnostics] == [ErrorCodes.UNRECOGNIZED_JUMP]

    def test_tree_is_not_modified(self):
        inner = E.Instruction("x := 1")
        root = E.Root(children=[inner])
        generate(root, "oberon")
        assert inner.text == ["x := 1"]
        assert inner.parent is root

    def test_custom_settings(self):
        settings = Settings.from_dict({"markers": {"output": "print"}})
        code = generate(E.Root(children=[E.Instruction("print x")]), "bash", settings)
        assert "echo x" in code.lines
