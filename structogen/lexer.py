"""
structogen/lexer.py
===================

Lexical splitting of element text lines.

Element texts are written in a loose, user-customisable notation, so the
lexer does not try to recognise a grammar.  It explodes a line at a fixed
set of single-character delimiters, fuses adjacent delimiters back into the
known multi-character operators, and (on request) re-accumulates string and
character literals so that later stages never see their contents
fragmented.  Nothing is ever dropped apart from the redundant third
character of the long assignment arrow ``<--``, so the lexemes of a line
concatenate back to the line itself.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, List, Sequence, Tuple

__all__ = [
    "DELIMITERS",
    "SPECIAL_SIGNS",
    "LexemeKind",
    "split_lexically",
    "classify_lexemes",
    "is_literal",
]

#: Single-character delimiters, in the order they are exploded.
DELIMITERS: Tuple[str, ...] = (
    " ", "\t", "\n", ".", ",", ";", "(", ")", "[", "]", "-", "+", "/", "*",
    ">", "<", "=", ":", "!", "'", '"', "\\", "%", "&", "|",
)

_SPLIT_RE = re.compile("(" + "|".join(re.escape(d) for d in DELIMITERS) + ")")

# Pairs of adjacent lexemes fused into one operator by the merge pass.
_FUSIONS = {
    ("<", "-"): "<-",
    (":", "="): ":=",
    ("!", "="): "!=",
    ("=", "="): "==",
    ("<", ">"): "<>",
    ("<", "="): "<=",
    ("<", "<"): "<<",
    (">", "="): ">=",
    (">", ">"): ">>",
    ("&", "&"): "&&",
    ("|", "|"): "||",
    ("\\", '"'): '\\"',
    ("\\", "\\"): "\\\\",
}

_QUOTES = ('"', "'")


def split_lexically(text: str, restore_literals: bool = False) -> List[str]:
    """Split *text* into lexemes.

    Maximal runs of non-delimiter characters become one lexeme each, every
    delimiter becomes a lexeme of its own, and known two-character operators
    are fused again.  Numeric literals such as ``123.45`` stay split; string
    and character literals are reassembled when *restore_literals* is set.

    An unterminated quote never raises: the open fragment is returned as an
    ordinary lexeme.
    """
    parts = [p for p in _SPLIT_RE.split(text) if p]

    i = 0
    while i < len(parts) - 1:
        fused = _FUSIONS.get((parts[i], parts[i + 1]))
        if fused is not None:
            parts[i:i + 2] = [fused]
            # "<--" is an accepted spelling of "<-"
            if fused == "<-" and i + 1 < len(parts) and parts[i + 1] == "-":
                del parts[i + 1]
        i += 1

    if restore_literals:
        for quote in _QUOTES:
            parts = _restore(parts, quote)
    return parts


def _restore(parts: Sequence[str], quote: str) -> List[str]:
    result: List[str] = []
    composed = None
    for lexeme in parts:
        if composed is not None:
            composed += lexeme
            if lexeme == quote:
                result.append(composed)
                composed = None
        elif lexeme == quote:
            composed = lexeme
        else:
            result.append(lexeme)
    if composed is not None:
        result.append(composed)
    return result


def is_literal(lexeme: str) -> bool:
    """True for a complete string or character literal lexeme."""
    return (
        len(lexeme) >= 2
        and lexeme[0] in _QUOTES
        and lexeme[-1] == lexeme[0]
    )


# ═══════════════════════════════════════════════════════════════════════════
# HIGHLIGHTING
# ═══════════════════════════════════════════════════════════════════════════

#: Operator lexemes and keyword operators shown emphasised in element text.
SPECIAL_SIGNS: frozenset = frozenset({
    ".", "[", "]", "<-", ":=",
    "+", "/", "%", "*", "-",
    "var", "mod", "div",
    "<=", ">=", "<>", "<<", ">>", "<", ">", "==", "!=", "=", "!",
    "&&", "||", "and", "or", "xor", "not",
    "'", '"',
})


class LexemeKind(Enum):
    VARIABLE = "variable"
    OPERATOR = "operator"
    IO_KEYWORD = "io"
    LITERAL = "literal"
    PLAIN = "plain"


def classify_lexemes(
    text: str,
    variables: Iterable[str] = (),
    io_keywords: Iterable[str] = (),
) -> List[Tuple[str, LexemeKind]]:
    """Pair every lexeme of *text* with its highlighting category.

    Variables win over operators, operators over I/O keywords, and those
    over literals, matching the emphasis order of the diagram view.
    """
    known_vars = set(variables)
    io_signs = {kw.strip() for kw in io_keywords if kw.strip()}
    classified: List[Tuple[str, LexemeKind]] = []
    for lexeme in split_lexically(text, True):
        if lexeme in known_vars:
            kind = LexemeKind.VARIABLE
        elif lexeme in SPECIAL_SIGNS:
            kind = LexemeKind.OPERATOR
        elif lexeme in io_signs:
            kind = LexemeKind.IO_KEYWORD
        elif is_literal(lexeme):
            kind = LexemeKind.LITERAL
        else:
            kind = LexemeKind.PLAIN
        classified.append((lexeme, kind))
    return classified
