"""
structogen/operators.py
=======================

Operator unification: every accepted operator spelling is mapped onto one
canonical, blank-padded token of the intermediate language.

Canonical tokens
----------------
===============  ==========================================  ==========
Family           Accepted spellings                          Canonical
===============  ==========================================  ==========
assignment       ``<-``  ``<--``  ``:=``                     ``<-``
equality         ``=``  ``==``                               ``==``
inequality       ``<>``  ``!=``                              ``!=``
ordering         ``<``  ``>``  ``<=``  ``>=``                unchanged
shift            ``<<``  ``>>``  ``shl``  ``shr``            ``<<`` ``>>``
logical and      ``&&``  ``and``                             ``&&``
logical or       ``||``  ``or``                              ``||``
logical not      ``!``  ``not``                              ``!``
bitwise xor      ``xor``                                     ``^``
modulo           ``%``  ``mod``                              ``%``
integer div      ``div``                                     ``div``
===============  ==========================================  ==========

Word operators match case-insensitively and only as whole words.

Rule precedence
---------------
The string variant applies ``_RULES`` strictly in table order.  Within each
symbolic family the longer spelling precedes every spelling that is a prefix
or suffix of it (``<--`` before ``<-``, ``<-`` before ``<=``/``<``, ``!=``
before ``!``, ``:=`` and ``==`` before ``=``), and every match is replaced by
an inert placeholder (``§NAME§``) rather than by the canonical symbol, so a
synthesised symbol can never be matched again by a later, shorter rule.  Only
after all rules ran are the placeholders expanded.  String and character
literals are masked the same way before the rules run.

Applying the unifier to its own output is a no-op.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, NamedTuple, Pattern, Tuple

from structogen.lexer import is_literal, split_lexically

__all__ = [
    "CANONICAL",
    "mask_literals",
    "unmask_literals",
    "unify_operators",
    "unify_operator_tokens",
]

logger = logging.getLogger(__name__)


class _Rule(NamedTuple):
    name: str
    pattern: Pattern[str]
    assignment: bool


def _symbol(name: str, spelling: str, assignment: bool = False) -> _Rule:
    return _Rule(name, re.compile(re.escape(spelling)), assignment)


def _word(name: str, word: str) -> _Rule:
    return _Rule(
        name,
        re.compile(r"(?<![\w§])" + word + r"(?![\w§])", re.IGNORECASE),
        False,
    )


#: Placeholder name -> canonical padded token.
CANONICAL: Dict[str, str] = {
    "ASGN": " <- ",
    "EQ": " == ",
    "NE": " != ",
    "LE": " <= ",
    "GE": " >= ",
    "LT": " < ",
    "GT": " > ",
    "SHL": " << ",
    "SHR": " >> ",
    "AND": " && ",
    "OR": " || ",
    "NOT": " ! ",
    "XOR": " ^ ",
    "MOD": " % ",
    "DIV": " div ",
}

_RULES: Tuple[_Rule, ...] = (
    # assignment
    _symbol("ASGN", "<--", assignment=True),
    _symbol("ASGN", "<-", assignment=True),
    _symbol("ASGN", ":=", assignment=True),
    # comparison and shift, two characters first
    _symbol("NE", "!="),
    _symbol("EQ", "=="),
    _symbol("LE", "<="),
    _symbol("GE", ">="),
    _symbol("NE", "<>"),
    _symbol("SHL", "<<"),
    _symbol("SHR", ">>"),
    _symbol("LT", "<"),
    _symbol("GT", ">"),
    _symbol("EQ", "="),
    # logic
    _symbol("AND", "&&"),
    _symbol("OR", "||"),
    _symbol("NOT", "!"),
    _word("AND", "and"),
    _word("OR", "or"),
    _word("NOT", "not"),
    _word("XOR", "xor"),
    # arithmetic
    _symbol("MOD", "%"),
    _word("MOD", "mod"),
    _word("DIV", "div"),
    _word("SHL", "shl"),
    _word("SHR", "shr"),
)

_PLACEHOLDER_RE = re.compile(r"§([A-Z]+)§")
_LITERAL_RE = re.compile(r"§L(\d+)§")
_BLANKS_RE = re.compile(r" {2,}")

# Token variant: exact lexeme -> canonical padded token.
_TOKEN_MAP: Dict[str, str] = {
    "==": " == ", "=": " == ",
    "!=": " != ", "<>": " != ",
    "<": " < ", ">": " > ", "<=": " <= ", ">=": " >= ",
    "<<": " << ", ">>": " >> ",
    "&&": " && ", "||": " || ", "!": " ! ",
    "%": " % ",
}
_TOKEN_WORD_MAP: Dict[str, str] = {
    "mod": " % ", "div": " div ", "shl": " << ", "shr": " >> ",
    "and": " && ", "or": " || ", "not": " ! ", "xor": " ^ ",
}
_TOKEN_ASSIGNMENTS = ("<-", ":=")


def mask_literals(text: str) -> Tuple[str, List[str]]:
    """Replace string and character literals of *text* by inert placeholders."""
    literals: List[str] = []
    masked: List[str] = []
    for lexeme in split_lexically(text, True):
        if is_literal(lexeme):
            masked.append(f"§L{len(literals)}§")
            literals.append(lexeme)
        else:
            masked.append(lexeme)
    return "".join(masked), literals


def unmask_literals(text: str, literals: List[str]) -> str:
    return _LITERAL_RE.sub(lambda m: literals[int(m.group(1))], text)


def unify_operators(expression: str, assignment_only: bool = False) -> str:
    """Return *expression* with all operator spellings canonicalised.

    With *assignment_only* only the assignment family is touched.  The
    result carries no outer blanks and no runs of blanks outside literals.
    """
    interm, literals = mask_literals(expression.strip())
    for rule in _RULES:
        if assignment_only and not rule.assignment:
            continue
        interm = rule.pattern.sub(f" §{rule.name}§ ", interm)

    interm = _PLACEHOLDER_RE.sub(lambda m: CANONICAL[m.group(1)], interm)
    interm = _BLANKS_RE.sub(" ", interm).strip()
    unified = unmask_literals(interm, literals)
    logger.debug("unify_operators(%r) -> %r", expression, unified)
    return unified


def unify_operator_tokens(tokens: List[str], assignment_only: bool = False) -> int:
    """Canonicalise operator lexemes of *tokens* in place.

    *tokens* is expected to come from ``split_lexically``.  Replaced lexemes
    become padded canonical tokens.  Returns the number of lexemes replaced,
    so callers can tell whether any operator was present at all.
    """
    count = 0
    for i, token in enumerate(tokens):
        if token in _TOKEN_ASSIGNMENTS:
            tokens[i] = CANONICAL["ASGN"]
            count += 1
        elif assignment_only:
            continue
        elif token in _TOKEN_MAP:
            tokens[i] = _TOKEN_MAP[token]
            count += 1
        elif token.lower() in _TOKEN_WORD_MAP:
            tokens[i] = _TOKEN_WORD_MAP[token.lower()]
            count += 1
    return count
