# tests/test_forclause.py
"""
Tests for counting-loop clause decomposition and step normalisation.
"""

import pytest

from structogen.errors import ErrorCodes
from structogen.forclause import (
    ForClause,
    for_clause_grammar,
    normalize_step,
    parse_for_clause,
)


def _parse(text, pre="for", post="to", step="by"):
    return parse_for_clause(text, pre, post, step)


class TestParseForClause:

    def test_full_clause(self):
        clause = _parse("for i <- 1 to n by 2")
        assert (clause.counter, clause.start, clause.end, clause.step) == ("i", "1", "n", 2)
        assert clause.issues == []

    def test_default_step(self):
        clause = _parse("for i <- 1 to 10")
        assert clause.step == 1
        assert clause.end == "10"

    def test_without_prefix(self):
        clause = _parse("k := 0 to n - 1")
        assert (clause.counter, clause.start, clause.end) == ("k", "0", "n - 1")

    def test_expressions_as_bounds(self):
        clause = _parse("for j <- f(a, b) to len(s) - 1")
        assert clause.start == "f(a, b)"
        assert clause.end == "len(s) - 1"

    def test_markers_are_case_insensitive(self):
        clause = _parse("FOR i <- 1 TO 5 BY -1")
        assert (clause.counter, clause.end, clause.step) == ("i", "5", -1)

    def test_marker_inside_identifier_is_not_a_marker(self):
        clause = _parse("for i <- top to bottom")
        assert clause.start == "top"
        assert clause.end == "bottom"

    def test_multi_word_markers(self):
        clause = parse_for_clause("for each i := 1 up to 9 step 3", "for each", "up to", "step")
        assert (clause.counter, clause.start, clause.end, clause.step) == ("i", "1", "9", 3)

    def test_signed_step_with_inner_blank(self):
        assert _parse("for i <- 10 to 0 by - 2").step == -2

    def test_malformed_step(self):
        clause = _parse("for i <- 1 to 10 by x")
        assert clause.step == 1
        assert [code for code, _ in clause.issues] == [ErrorCodes.MALFORMED_STEP]

    def test_zero_step(self):
        clause = _parse("for i <- 1 to 10 by 0")
        assert clause.step == 1
        assert [code for code, _ in clause.issues] == [ErrorCodes.ZERO_STEP]

    def test_unparseable_clause_keeps_raw_text(self):
        clause = _parse("repeat ten times")
        assert clause.raw == "repeat ten times"
        assert clause.start == clause.end == "repeat ten times"
        assert not clause.is_complete
        assert clause.issues[0][0] == ErrorCodes.MALFORMED_FOR_CLAUSE

    def test_empty_post_marker_is_a_recovery(self):
        clause = _parse("for i <- 1 to 10", post="")
        assert clause.issues[0][0] == ErrorCodes.MALFORMED_FOR_CLAUSE


class TestGrammarCache:

    def test_same_markers_same_grammar(self):
        assert for_clause_grammar("for", "to", "by") is for_clause_grammar("for", "to", "by")

    def test_empty_post_marker_rejected(self):
        with pytest.raises(ValueError):
            for_clause_grammar("for", " ", "by")


class TestNormalizeStep:

    @pytest.mark.parametrize("value, step, issue", [
        (None, 1, None),
        (3, 3, None),
        (-1, -1, None),
        ("2", 2, None),
        ("+ 4", 4, None),
        ("-\t5", -5, None),
        ("x", 1, ErrorCodes.MALFORMED_STEP),
        ("1.5", 1, ErrorCodes.MALFORMED_STEP),
        ("", 1, ErrorCodes.MALFORMED_STEP),
        (0, 1, ErrorCodes.ZERO_STEP),
        ("- 0", 1, ErrorCodes.ZERO_STEP),
    ])
    def test_normalize(self, value, step, issue):
        result, problem = normalize_step(value)
        assert result == step
        assert (problem[0] if problem else None) == issue


class TestForClauseType:

    def test_is_complete(self):
        assert ForClause("i", "1", "n").is_complete
        assert not ForClause("", "1", "n").is_complete
