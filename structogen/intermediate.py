"""
structogen/intermediate.py
==========================

Phase one of code generation: every element text line is turned into one
line of a backend-independent intermediate language.

Conventions of the intermediate language
----------------------------------------
* Operators are the padded canonical tokens of ``structogen.operators``
  (``" <- "``, ``" == "``, ``" != "``, ``" && "``, ``" % "``, ...).  No run of
  blanks survives outside string literals.
* Branch, case, while and repeat keywords are wiped off.  Counting-loop
  keywords stay, since ``For`` elements decompose their clause themselves.
* ``inc(x)``, ``inc(x, k)``, ``dec(x)`` and ``dec(x, k)`` become plain
  assignments.
* The line carries exactly one leading and one trailing blank.  Trimming is
  left to the caller.
"""

from __future__ import annotations

import logging
import re
from typing import List

from structogen.config import MarkerConfig
from structogen.operators import unify_operators

__all__ = [
    "to_intermediate",
    "to_intermediate_lines",
]

logger = logging.getLogger(__name__)

_IDENT_RE = re.compile(r"\w")

_INC_DEC_RULES = (
    (re.compile(r"(?<!\w)inc\s*\(\s*([^,()]+?)\s*,\s*((?:[^()]|\([^()]*\))+?)\s*\)", re.IGNORECASE),
     r"\1 <- \1 + \2"),
    (re.compile(r"(?<!\w)inc\s*\(\s*([^,()]+?)\s*\)", re.IGNORECASE),
     r"\1 <- \1 + 1"),
    (re.compile(r"(?<!\w)dec\s*\(\s*([^,()]+?)\s*,\s*((?:[^()]|\([^()]*\))+?)\s*\)", re.IGNORECASE),
     r"\1 <- \1 - \2"),
    (re.compile(r"(?<!\w)dec\s*\(\s*([^,()]+?)\s*\)", re.IGNORECASE),
     r"\1 <- \1 - 1"),
)


def _is_ident(char: str) -> bool:
    return bool(char) and bool(_IDENT_RE.match(char))


def _repad(text: str) -> str:
    text = " " + text.strip(" ") + " "
    while "  " in text:
        text = text.replace("  ", " ")
    return text


def _strip_prefix(interm: str, marker: str) -> str:
    body = interm.strip(" ")
    if not body.startswith(marker):
        return interm
    following = body[len(marker):len(marker) + 1]
    if _is_ident(marker[-1]) and _is_ident(following):
        return interm
    return body[len(marker):]


def _strip_postfix(interm: str, marker: str) -> str:
    body = interm.strip(" ")
    if not body.endswith(marker):
        return interm
    cut = len(body) - len(marker)
    preceding = body[cut - 1:cut] if cut > 0 else ""
    if _is_ident(marker[0]) and _is_ident(preceding):
        return interm
    return body[:cut]


def _excise(interm: str, marker: str, prefix: bool) -> str:
    if marker != marker.strip():
        # Authored with padding: the blanks isolate it already.
        return interm.replace(marker, " ")
    if prefix:
        return _strip_prefix(interm, marker)
    return _strip_postfix(interm, marker)


def to_intermediate(text: str, markers: MarkerConfig) -> str:
    """Convert one element text line into an intermediate-language line.

    Unpadded prefix markers are only removed at the start of the line and
    unpadded postfix markers only at its end, each one only where it is not
    glued to an identifier.  Padded markers are removed wherever they occur.
    """
    interm = _repad(text)
    for marker in markers.prefix_markers():
        interm = _repad(_excise(interm, marker, prefix=True))
    for marker in markers.postfix_markers():
        interm = _repad(_excise(interm, marker, prefix=False))

    interm = unify_operators(interm)

    for pattern, replacement in _INC_DEC_RULES:
        interm = pattern.sub(replacement, interm)

    interm = _repad(interm)
    logger.debug("to_intermediate(%r) -> %r", text, interm)
    return interm


def to_intermediate_lines(lines: List[str], markers: MarkerConfig) -> List[str]:
    return [to_intermediate(line, markers) for line in lines]
