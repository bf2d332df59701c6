# tests/test_intermediate.py
"""
Tests for the intermediate builder: marker excision, operator unification
and increment/decrement rewriting.
"""

import pytest

from structogen.config import MarkerConfig
from structogen.intermediate import to_intermediate, to_intermediate_lines


class TestMarkerStripping:

    def test_while_with_parenthesis_markers(self):
        cfg = MarkerConfig(pre_while="while (", post_while=")")
        result = to_intermediate("while (x < 3)", cfg)
        assert result.strip() == "x < 3"
        assert "while" not in result
        assert ")" not in result

    def test_default_while_marker(self, markers):
        assert to_intermediate("while x < 3", markers) == " x < 3 "

    def test_repeat_marker(self, markers):
        assert to_intermediate("until done", markers) == " done "

    def test_marker_glued_to_identifier_is_kept(self, markers):
        assert to_intermediate("whileCount > 0", markers) == " whileCount > 0 "

    def test_unpadded_marker_only_at_line_start(self, markers):
        assert to_intermediate("x <- while_flag", markers) == " x <- while_flag "

    def test_postfix_marker(self):
        cfg = MarkerConfig(pre_alt="if", post_alt="then")
        assert to_intermediate("if a = b then", cfg) == " a == b "

    def test_postfix_marker_glued_is_kept(self):
        cfg = MarkerConfig(post_alt="then")
        assert to_intermediate("x < athen", cfg) == " x < athen "

    def test_padded_marker_removed_everywhere(self):
        cfg = MarkerConfig(pre_alt=" is ")
        assert to_intermediate("x is positive", cfg) == " x positive "

    def test_counting_loop_markers_untouched(self, markers):
        assert to_intermediate("for i <- 1 to n", markers) == " for i <- 1 to n "

    def test_longest_marker_first(self):
        cfg = MarkerConfig(pre_while="while", pre_repeat="while not")
        assert to_intermediate("while not done", cfg) == " done "


class TestOperatorPass:

    def test_less_than_kept(self, markers):
        assert " < " in to_intermediate("while x<3", markers)

    def test_assignment_canonical(self, markers):
        assert to_intermediate("x := 1", markers) == " x <- 1 "

    def test_padding_is_kept(self, markers):
        result = to_intermediate("a", markers)
        assert result.startswith(" ") and result.endswith(" ")

    def test_no_double_blanks(self, markers):
        assert "  " not in to_intermediate("a    <-   b", markers)


class TestIncDec:

    @pytest.mark.parametrize("text, expected", [
        ("inc(x,5)", " x <- x + 5 "),
        ("inc( x , 5 )", " x <- x + 5 "),
        ("INC(x)", " x <- x + 1 "),
        ("dec(x, k)", " x <- x - k "),
        ("Dec(count)", " count <- count - 1 "),
        ("inc(x, f(2))", " x <- x + f(2) "),
        ("dec(n, len(s))", " n <- n - len(s) "),
    ])
    def test_rewrite(self, markers, text, expected):
        assert to_intermediate(text, markers) == expected

    def test_identifier_ending_in_inc_untouched(self, markers):
        assert to_intermediate("zinc(x)", markers) == " zinc(x) "


class TestLines:

    def test_each_line_converted(self, markers):
        assert to_intermediate_lines(["x := 1", "inc(x)"], markers) == [
            " x <- 1 ", " x <- x + 1 ",
        ]
