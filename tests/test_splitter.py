# tests/test_splitter.py
"""
Tests for top-level expression list splitting.
"""

import pytest

from structogen.splitter import split_expression_list


class TestSplitExpressionList:

    def test_nested_calls(self):
        assert split_expression_list("f(a,b), c, g(d,e,f)") == ["f(a,b)", "c", "g(d,e,f)"]

    def test_comma_in_string_literal(self):
        assert split_expression_list('a := "x,y" + 1') == ['a := "x,y" + 1']

    def test_comma_in_char_literal(self):
        assert split_expression_list("',', x") == ["','", "x"]

    @pytest.mark.parametrize("text, count", [
        ("a", 1),
        ("a, b", 2),
        ("a, (b, c)", 2),
        ("f(g(h(1, 2), 3), 4), 5", 2),
    ])
    def test_arity(self, text, count):
        assert len(split_expression_list(text)) == count

    def test_excess_closing_parenthesis(self):
        assert split_expression_list("a), b") == ["a)", "b"]

    def test_trailing_blank_remainder_dropped(self):
        assert split_expression_list("a, b,  ") == ["a", "b"]

    def test_empty(self):
        assert split_expression_list("") == []

    def test_custom_separator(self):
        assert split_expression_list("a: int; b, c: real", ";") == ["a: int", "b, c: real"]
