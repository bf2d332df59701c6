# tests/test_elements.py
"""
Tests for the element tree: construction invariants, back-references,
accessors, signature parsing, variable detection and visitors.
"""

import pytest

from structogen import elements as E
from structogen.config import MarkerConfig
from structogen.errors import ErrorCodes, InvalidDiagramError
from structogen.visitor import DepthFirstVisitor, ElementVisitor


class TestConstruction:

    def test_string_text_is_split_into_lines(self):
        element = E.Instruction("a <- 1\nb <- 2")
        assert element.text == ["a <- 1", "b <- 2"]

    def test_empty_comment_string(self):
        assert E.Instruction("x", comment="").comment == []

    def test_children_get_parent(self):
        inner = E.Instruction("y <- 1")
        alt = E.Alternative("x > 0", q_true=[inner])
        assert inner.parent is alt
        assert isinstance(alt.q_true, E.Block)
        assert alt.q_true.owner is alt

    def test_false_branch_defaults_to_empty(self):
        alt = E.Alternative("x > 0")
        assert len(alt.q_false) == 0
        assert not alt.q_false

    def test_get_root(self):
        leaf = E.Instruction("x <- 1")
        root = E.Root(children=[E.While("while x", body=[leaf])])
        assert leaf.get_root() is root

    def test_append_adopts(self):
        loop = E.Forever()
        jump = E.Jump("leave")
        loop.body.append(jump)
        assert jump.parent is loop
        assert loop.body[0] is jump


class TestInvariants:

    def test_case_label_count_mismatch(self):
        with pytest.raises(InvalidDiagramError) as info:
            E.Case(["x", "1", "2"], branches=[[]])
        assert info.value.code == ErrorCodes.CASE_ARITY

    def test_case_without_branches(self):
        with pytest.raises(InvalidDiagramError):
            E.Case(["x"], branches=[])

    def test_element_cannot_contain_itself(self):
        loop = E.Forever()
        with pytest.raises(InvalidDiagramError) as info:
            loop.body.append(loop)
        assert info.value.code == ErrorCodes.CYCLIC_TREE

    def test_ancestor_cannot_become_descendant(self):
        outer = E.Forever()
        inner = E.While("while a")
        outer.body.append(inner)
        with pytest.raises(InvalidDiagramError):
            inner.body.append(outer)


class TestCase:

    def test_selector_and_labels(self):
        case = E.Case(["op", "1", "2, 3", "default"], branches=[[], [], []])
        assert case.selector == "op"
        assert case.labels == ["1", "2, 3", "default"]
        assert case.has_default

    @pytest.mark.parametrize("label, has_default", [
        ("%", False),
        (" % ", False),
        ("default", True),
        ("%%", True),
    ])
    def test_wildcard_marker(self, label, has_default):
        case = E.Case(["x", "1", label], branches=[[], []])
        assert case.has_default is has_default


class TestAccessors:

    def test_switched_text(self):
        element = E.Instruction("x <- 1", comment="set x")
        assert element.get_text() == ["x <- 1"]
        assert element.get_text(switched=True) == ["set x"]
        assert element.get_comment(switched=True) == ["x <- 1"]

    def test_long_text(self):
        assert E.While(["while a", "  and b"]).long_text() == "while a and b"

    def test_full_text(self):
        alt = E.Alternative("c", q_true=[E.Instruction("a")], q_false=[E.Call("f()")])
        assert alt.full_text() == ["c", "a", "f()"]
        assert alt.full_text(instructions_only=True) == ["a", "f()"]

    def test_walk_order(self):
        a, b, c = E.Instruction("a"), E.Instruction("b"), E.Instruction("c")
        loop = E.Forever(body=[a, b])
        assert list(E.walk([loop, c])) == [loop, a, b, c]


class TestForFacets:

    def test_from_text(self, markers):
        clause = E.For("for i <- 1 to n by 2").loop_facets(markers)
        assert (clause.counter, clause.start, clause.end, clause.step) == ("i", "1", "n", 2)

    def test_explicit_facets_win(self, markers):
        loop = E.For("anything", counter_var="k", start_value="0", end_value="9", step="3")
        clause = loop.loop_facets(markers)
        assert (clause.counter, clause.start, clause.end, clause.step) == ("k", "0", "9", 3)
        assert clause.issues == []

    def test_explicit_step_overrides_text_step(self, markers):
        clause = E.For("for i <- 1 to n by x", step=-1).loop_facets(markers)
        assert clause.step == -1
        assert clause.issues == []

    def test_explicit_zero_step(self, markers):
        clause = E.For("for i <- 1 to n", step=0).loop_facets(markers)
        assert clause.step == 1
        assert clause.issues[0][0] == ErrorCodes.ZERO_STEP

    def test_custom_markers(self):
        cfg = MarkerConfig(pre_for="loop", post_for="upto", step_for="stepping")
        clause = E.For("loop c := a upto b stepping 4").loop_facets(cfg)
        assert (clause.counter, clause.start, clause.end, clause.step) == ("c", "a", "b", 4)


class TestSignature:

    @pytest.mark.parametrize("text, name, params, result", [
        ("main", "main", [], None),
        ("fact(n: int): int", "fact", [("n", "int")], "int"),
        ("swap(var a, b: real)", "swap", [("a", "real"), ("b", "real")], None),
        ("f(a: int; b: char): bool", "f", [("a", "int"), ("b", "char")], "bool"),
        ("int add(int a, unsigned int b)", "add",
         [("a", "int"), ("b", "unsigned int")], "int"),
        ("go(x, y)", "go", [("x", None), ("y", None)], None),
    ])
    def test_parse(self, text, name, params, result):
        signature = E.parse_signature(text)
        assert signature.name == name
        assert [tuple(p) for p in signature.parameters] == params
        assert signature.result_type == result


class TestRoot:

    def test_program_defaults(self):
        root = E.Root()
        assert root.is_program
        assert root.method_name == "main"

    def test_subroutine_metadata_from_signature(self):
        root = E.Root("fact(n: int): int", is_program=False)
        assert root.method_name == "fact"
        assert root.parameter_names == ["n"]
        assert root.parameter_types == ["int"]
        assert root.result_type == "int"

    def test_program_ignores_parameter_list(self):
        root = E.Root("Demo(input, output)")
        assert root.method_name == "Demo"
        assert root.parameters == []

    def test_explicit_metadata_kept(self):
        root = E.Root("whatever", is_program=False, method_name="run",
                      parameters=[("a", "int")], result_type="bool")
        assert root.method_name == "run"
        assert root.parameters == [E.Parameter("a", "int")]
        assert root.result_type == "bool"

    def test_var_names(self):
        root = E.Root(
            "calc(n: int)",
            is_program=False,
            children=[
                E.Instruction(["read a, b[2]", "total := 0"]),
                E.For("for i <- 1 to n", body=[E.Instruction("total <- total + i")]),
                E.Instruction('msg <- "x := y"'),
                E.Instruction("write total"),
                E.Instruction("p.x <- 3"),
            ],
        )
        assert root.get_var_names() == ["n", "a", "b", "total", "i", "msg", "p"]

    def test_comparison_is_not_an_assignment(self):
        root = E.Root(children=[E.Instruction("a = b")])
        assert root.get_var_names() == []


class _KindCollector(DepthFirstVisitor):

    def __init__(self):
        self.entered = []

    def enter(self, element):
        self.entered.append(element.kind)


class TestVisitors:

    def test_dispatch_by_kind(self):
        class Names(ElementVisitor):
            def visit_jump(self, element):
                return "jump"

        assert Names().visit(E.Jump("leave")) == "jump"
        assert Names().visit(E.Instruction("x")) is None

    def test_depth_first_order(self):
        root = E.Root(children=[
            E.Alternative("c", q_true=[E.Instruction("a")], q_false=[E.Jump("exit")]),
            E.Case(["s", "1", "%"], branches=[[E.Call("f()")], []]),
            E.Parallel(threads=[[E.Repeat("until x")], [E.Forever()]]),
        ])
        collector = _KindCollector()
        collector.visit(root)
        assert collector.entered == [
            "root", "alternative", "instruction", "jump", "case", "call",
            "parallel", "repeat", "forever",
        ]
