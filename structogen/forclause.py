"""
structogen/forclause.py
=======================

Decomposition of counting-loop clauses.

A ``For`` element is usually authored as one line in the configured loop
notation, e.g. ``for i <- 1 to n by 2``.  The four loop facets (counter,
start value, end value, step) are recovered by a small PEG grammar that is
generated from the ``pre_for`` / ``post_for`` / ``step_for`` markers of the
current ``MarkerConfig``:

    clause    = _ prefix? counter _ assign start postfix end step_part? _
    start     = everything up to the ``post_for`` marker
    end       = everything up to the ``step_for`` marker (or end of line)

Grammars are cached per marker triple.

Recoveries
----------
* An unparseable clause keeps its raw text in ``ForClause.raw``; missing
  bounds fall back to that raw text.
* The step must be a signed integer constant (inner blanks allowed).  An
  unparseable step, and a step of exactly zero, both become 1.  The zero
  case silently changes the loop's meaning and is therefore reported as a
  diagnostic of its own.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple, Union

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from structogen.errors import ErrorCode, ErrorCodes

__all__ = [
    "ForClause",
    "for_clause_grammar",
    "parse_for_clause",
    "normalize_step",
]

logger = logging.getLogger(__name__)

_STEP_RE = re.compile(r"^[+-]?\d+$")


@dataclass
class ForClause:
    """The four facets of a counting loop."""

    counter: str
    start: str
    end: str
    step: int = 1
    raw: str = ""
    issues: List[Tuple[ErrorCode, str]] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return bool(self.counter and self.start and self.end)


def normalize_step(value: Union[int, str, None]) -> Tuple[int, Optional[Tuple[ErrorCode, str]]]:
    """Return ``(step, issue)`` for a raw step value.

    ``issue`` is ``None`` unless the value had to be replaced by 1.
    """
    if value is None:
        return 1, None
    if isinstance(value, int):
        step = value
    else:
        compact = value.replace(" ", "").replace("\t", "")
        if not _STEP_RE.match(compact):
            return 1, (ErrorCodes.MALFORMED_STEP,
                       f"loop step {value!r} is not an integer constant; using 1")
        step = int(compact)
    if step == 0:
        return 1, (ErrorCodes.ZERO_STEP, "loop step 0 replaced by 1")
    return step, None


def _marker_regex(marker: str) -> str:
    words = marker.split()
    pattern = r"\s+".join(re.escape(w) for w in words)
    if re.match(r"\w", words[0][0]):
        pattern = r"\b" + pattern
    if re.match(r"\w", words[-1][-1]):
        pattern += r"\b"
    return pattern


def _token(pattern: str) -> str:
    # parsimonious regex literal, case-insensitive
    return "~" + repr(pattern) + "i"


@lru_cache(maxsize=32)
def for_clause_grammar(pre_for: str, post_for: str, step_for: str) -> Grammar:
    """Build the clause grammar for one marker triple."""
    if not post_for.strip():
        raise ValueError("post_for marker must not be empty")
    post_re = _marker_regex(post_for)
    rules = [
        "clause    = _ {prefix}counter _ assign start postfix end {step}_",
        "counter   = ~'[A-Za-z_][A-Za-z0-9_]*'",
        "assign    = ~'<--?|:=|='",
        "start     = " + _token(r"(?:(?!" + post_re + r").)+"),
        "postfix   = " + _token(post_re),
        "_         = ~" + repr(r"\s*"),
    ]
    prefix = step = ""
    if pre_for.strip():
        prefix = "prefix? "
        rules.append("prefix    = " + _token(_marker_regex(pre_for)) + " _")
    if step_for.strip():
        step_re = _marker_regex(step_for)
        step = "step_part? "
        rules.append("end       = " + _token(r"(?:(?!" + step_re + r").)+"))
        rules.append("step_part = " + _token(step_re) + " step_value")
        rules.append("step_value = ~'.+'")
    else:
        rules.append("end       = ~'.+'")
    rules[0] = rules[0].format(prefix=prefix, step=step)
    return Grammar("\n".join(rules))


class _FacetCollector(NodeVisitor):
    """Pick the facet texts out of a clause parse tree."""

    def __init__(self) -> None:
        self.facets = {}

    def generic_visit(self, node, visited_children):
        return None

    def _keep(self, name, node):
        self.facets[name] = node.text.strip()

    def visit_counter(self, node, visited_children):
        self._keep("counter", node)

    def visit_start(self, node, visited_children):
        self._keep("start", node)

    def visit_end(self, node, visited_children):
        self._keep("end", node)

    def visit_step_value(self, node, visited_children):
        self._keep("step", node)


def parse_for_clause(text: str, pre_for: str, post_for: str, step_for: str) -> ForClause:
    """Decompose *text* into a ``ForClause``; never raises for bad input."""
    clause = ForClause(counter="", start="", end="", raw=text.strip())
    try:
        tree = for_clause_grammar(pre_for, post_for, step_for).parse(text.strip())
    except (ParseError, ValueError) as e:
        logger.warning("Cannot decompose loop clause %r: %s", text, e)
        clause.issues.append((ErrorCodes.MALFORMED_FOR_CLAUSE,
                              f"cannot decompose loop clause {text.strip()!r}"))
        clause.start = clause.end = clause.raw
        return clause

    collector = _FacetCollector()
    collector.visit(tree)
    clause.counter = collector.facets.get("counter", "")
    clause.start = collector.facets.get("start", "")
    clause.end = collector.facets.get("end", "")
    clause.step, issue = normalize_step(collector.facets.get("step"))
    if issue is not None:
        clause.issues.append(issue)
    if not clause.is_complete:
        clause.issues.append((ErrorCodes.MALFORMED_FOR_CLAUSE,
                              f"loop clause {clause.raw!r} lacks a bound"))
        clause.start = clause.start or clause.raw
        clause.end = clause.end or clause.raw
    return clause
