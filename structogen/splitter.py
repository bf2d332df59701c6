"""
structogen/splitter.py
======================

Splitting of argument and value lists at their top-level separators.

``write a, f(b, c), "x, y"`` must become three output statements, not five,
so commas nested in parentheses or inside string literals never split.
"""

from __future__ import annotations

from typing import List

from structogen.lexer import split_lexically

__all__ = ["split_expression_list"]


def split_expression_list(text: str, separator: str = ",") -> List[str]:
    """Split *text* at every *separator* lexeme on parenthesis level 0.

    Excess closing parentheses are tolerated: the level never drops below
    zero.  Expressions are returned trimmed; a trailing blank remainder is
    dropped.

    >>> split_expression_list("f(a,b), c, g(d,e,f)")
    ['f(a,b)', 'c', 'g(d,e,f)']
    """
    expressions: List[str] = []
    current = ""
    depth = 0
    for token in split_lexically(text, True):
        if token == separator and depth == 0:
            expressions.append(current.strip())
            current = ""
            continue
        if token == "(":
            depth += 1
        elif token == ")":
            depth = max(depth - 1, 0)
        current += token
    if current.strip():
        expressions.append(current.strip())
    return expressions
