# tests/test_operators.py
"""
Tests for operator unification: canonical spellings, precedence of the
rule table, literal protection and idempotence.
"""

import pytest

from structogen.lexer import split_lexically
from structogen.operators import (
    CANONICAL,
    mask_literals,
    unify_operator_tokens,
    unify_operators,
    unmask_literals,
)


class TestCanonicalSpellings:

    @pytest.mark.parametrize("text, expected", [
        ("x <- 1", "x <- 1"),
        ("x <-- 1", "x <- 1"),
        ("x := 1", "x <- 1"),
        ("x:=1", "x <- 1"),
        ("a = b", "a == b"),
        ("a == b", "a == b"),
        ("a <> b", "a != b"),
        ("a != b", "a != b"),
        ("a<=b", "a <= b"),
        ("a>=b", "a >= b"),
        ("a<b", "a < b"),
        ("a>b", "a > b"),
        ("a << 2", "a << 2"),
        ("a shl 2", "a << 2"),
        ("a shr 2", "a >> 2"),
        ("a && b", "a && b"),
        ("a and b", "a && b"),
        ("a AND b", "a && b"),
        ("a || b", "a || b"),
        ("a OR b", "a || b"),
        ("not a", "! a"),
        ("NOT a", "! a"),
        ("a xor b", "a ^ b"),
        ("a mod b", "a % b"),
        ("a MOD b", "a % b"),
        ("a DIV b", "a div b"),
    ])
    def test_unify(self, text, expected):
        assert unify_operators(text) == expected

    def test_modulo_word_is_gone(self):
        result = unify_operators("a mod b")
        assert "%" in result
        assert "mod" not in result

    def test_logical_and_token(self):
        assert CANONICAL["AND"].strip() in unify_operators("a AND b")


class TestRulePrecedence:

    def test_inequality_not_split_by_less_than(self):
        assert unify_operators("a<>b") == "a != b"

    def test_less_equal_not_split(self):
        assert unify_operators("a <= b") == "a <= b"

    def test_assignment_not_read_as_comparison(self):
        assert unify_operators("x<-1") == "x <- 1"

    def test_colon_equals_not_read_as_equality(self):
        assert "==" not in unify_operators("x := y")

    def test_shift_before_less_than(self):
        assert unify_operators("a<<b") == "a << b"


class TestWordBoundaries:

    @pytest.mark.parametrize("text", [
        "order <- 1",
        "android <- nothing",
        "modulo <- divisor",
        "shlong <- xored",
    ])
    def test_identifiers_containing_operator_words(self, text):
        assert unify_operators(text) == text


class TestLiteralProtection:

    def test_operators_in_string_untouched(self):
        assert unify_operators('s <- "a = b and c"') == 's <- "a = b and c"'

    def test_blanks_in_literal_kept(self):
        assert unify_operators('s <- "a   b"') == 's <- "a   b"'

    def test_mask_and_unmask(self):
        masked, literals = mask_literals('x <- "a" + \'b\'')
        assert literals == ['"a"', "'b'"]
        assert '"' not in masked
        assert unmask_literals(masked, literals) == 'x <- "a" + \'b\''


class TestAssignmentOnly:

    def test_only_assignment_rewritten(self):
        assert unify_operators("x := a = b", assignment_only=True) == "x <- a = b"

    def test_blanks_collapsed(self):
        assert unify_operators("a    +   b") == "a + b"


class TestIdempotence:

    @pytest.mark.parametrize("text", [
        "x <- 1",
        "x := a mod b",
        "a <> b and not c",
        "a = b or c >= d",
        "a xor b shl 2",
        "y <- x div 2",
        's <- "a <> b" + t',
        "i<=n&&!done",
    ])
    def test_unify_twice_is_unify_once(self, text):
        once = unify_operators(text)
        assert unify_operators(once) == once


class TestTokenVariant:

    def test_counts_replacements(self):
        tokens = split_lexically("a = b and c", True)
        assert unify_operator_tokens(tokens) == 2
        assert " == " in tokens
        assert " && " in tokens

    def test_assignment_only(self):
        tokens = split_lexically("x := a = b", True)
        assert unify_operator_tokens(tokens, assignment_only=True) == 1
        assert tokens[2] == CANONICAL["ASGN"]
        assert "=" in tokens

    def test_no_operator_returns_zero(self):
        tokens = split_lexically("foo(bar)", True)
        assert unify_operator_tokens(tokens) == 0

    def test_literals_are_single_tokens(self):
        tokens = split_lexically('s <- "a = b"', True)
        assert unify_operator_tokens(tokens) == 1
