"""
structogen/elements.py
======================

The element tree of a structured diagram.

Every element carries its own text lines, comment lines, a
``render_as_comment`` flag and a non-owning back-reference to the element
that owns it.  Compound elements own their child sequences as ``Block``
objects; a ``Block`` adopts every element appended to it, so back-references
are always consistent and cycles are rejected as soon as they would arise.

Elements are built by a diagram editor or an importer (or by
``structogen.loader``) before code generation starts.  Generation only
reads them.

Kinds
-----
``Instruction``   assignments, input and output statements
``Alternative``   condition + true block + (possibly empty) false block
``Case``          selector line + one label line per branch + branches
``For``           counting loop
``While``         pre-condition loop
``Repeat``        post-condition loop
``Forever``       unconditional loop
``Call``          routine invocations
``Jump``          leave / return / exit
``Parallel``      concurrent threads
``Root``          the routine (program or subroutine) itself
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import (
    Any,
    ClassVar,
    Iterable,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Union,
)

from structogen.config import MarkerConfig
from structogen.errors import ErrorCodes, InvalidDiagramError
from structogen.forclause import ForClause, normalize_step, parse_for_clause
from structogen.lexer import split_lexically
from structogen.operators import CANONICAL, unify_operator_tokens
from structogen.splitter import split_expression_list

__all__ = [
    "Element",
    "Block",
    "Instruction",
    "Alternative",
    "Case",
    "For",
    "While",
    "Repeat",
    "Forever",
    "Call",
    "Jump",
    "Parallel",
    "Root",
    "Parameter",
    "Signature",
    "parse_signature",
    "walk",
]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_]\w*$")


# ═══════════════════════════════════════════════════════════════════════════
# BLOCKS
# ═══════════════════════════════════════════════════════════════════════════

class Block:
    """An ordered sequence of sibling elements (a child slot)."""

    def __init__(self, elements: Iterable["Element"] = (), owner: Optional["Element"] = None) -> None:
        self._elements: List[Element] = []
        self.owner = owner
        for element in elements:
            self.append(element)

    def append(self, element: "Element") -> None:
        if self.owner is not None:
            ancestor: Optional[Element] = self.owner
            while ancestor is not None:
                if ancestor is element:
                    raise InvalidDiagramError(
                        f"{element.kind} element would become its own ancestor",
                        code=ErrorCodes.CYCLIC_TREE,
                    )
                ancestor = ancestor.parent
        element.parent = self.owner
        self._elements.append(element)

    def _adopt(self, owner: "Element") -> "Block":
        self.owner = owner
        elements, self._elements = self._elements, []
        for element in elements:
            self.append(element)
        return self

    def __iter__(self) -> Iterator["Element"]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __getitem__(self, index: int) -> "Element":
        return self._elements[index]

    def __bool__(self) -> bool:
        return bool(self._elements)

    def __repr__(self) -> str:
        return f"Block({self._elements!r})"


BlockLike = Union[Block, Sequence["Element"], None]


def _as_block(value: BlockLike, owner: "Element") -> Block:
    if isinstance(value, Block):
        return value._adopt(owner)
    return Block(value or (), owner)


# ═══════════════════════════════════════════════════════════════════════════
# ELEMENTS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class Element:
    """Base class of all diagram elements."""

    text: List[str] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    render_as_comment: bool = False
    parent: Optional["Element"] = field(default=None, repr=False)

    kind: ClassVar[str] = "element"

    def __post_init__(self) -> None:
        if isinstance(self.text, str):
            self.text = self.text.split("\n")
        if isinstance(self.comment, str):
            self.comment = self.comment.split("\n") if self.comment else []
        self.text = list(self.text)
        self.comment = list(self.comment)

    # --- accessors ---

    def get_text(self, switched: bool = False) -> List[str]:
        """Text lines as displayed; *switched* swaps text and comment."""
        return list(self.comment if switched else self.text)

    def get_comment(self, switched: bool = False) -> List[str]:
        return list(self.text if switched else self.comment)

    def long_text(self) -> str:
        """All text lines joined by blanks (conditions spanning lines)."""
        return " ".join(line.strip() for line in self.text if line.strip())

    def get_root(self) -> Optional["Root"]:
        element: Optional[Element] = self
        while element is not None:
            if isinstance(element, Root):
                return element
            element = element.parent
        return None

    def blocks(self) -> List[Block]:
        """Child slots, in document order."""
        return []

    def full_text(self, instructions_only: bool = False) -> List[str]:
        """Text lines of this element and all its descendants."""
        lines: List[str] = []
        if not (instructions_only and self.blocks()):
            lines.extend(self.text)
        for block in self.blocks():
            for child in block:
                lines.extend(child.full_text(instructions_only))
        return lines

    def accept(self, visitor: Any) -> Any:
        return getattr(visitor, f"visit_{self.kind}")(self)


@dataclass(eq=False)
class Instruction(Element):
    kind: ClassVar[str] = "instruction"


@dataclass(eq=False)
class Call(Element):
    kind: ClassVar[str] = "call"


@dataclass(eq=False)
class Jump(Element):
    """leave [n] / return [value] / exit [code]; an empty jump leaves one loop."""

    kind: ClassVar[str] = "jump"


@dataclass(eq=False)
class Alternative(Element):
    q_true: BlockLike = None
    q_false: BlockLike = None

    kind: ClassVar[str] = "alternative"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.q_true = _as_block(self.q_true, self)
        self.q_false = _as_block(self.q_false, self)

    def blocks(self) -> List[Block]:
        return [self.q_true, self.q_false]


@dataclass(eq=False)
class Case(Element):
    """``text[0]`` is the selector, ``text[i + 1]`` labels ``branches[i]``.

    The last branch is the default branch unless its label is ``%``.
    """

    branches: List[BlockLike] = field(default_factory=list)

    kind: ClassVar[str] = "case"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.branches = [_as_block(b, self) for b in self.branches]
        if not self.branches:
            raise InvalidDiagramError("Case element without branches")
        if len(self.text) != len(self.branches) + 1:
            raise InvalidDiagramError(
                f"Case element has {len(self.text) - 1} label line(s) "
                f"for {len(self.branches)} branch(es)",
                hint="the first text line is the selector, then one label per branch",
            )

    @property
    def selector(self) -> str:
        return self.text[0]

    @property
    def labels(self) -> List[str]:
        return self.text[1:]

    @property
    def has_default(self) -> bool:
        return self.text[-1].strip() != "%"

    def blocks(self) -> List[Block]:
        return list(self.branches)


@dataclass(eq=False)
class _Loop(Element):
    body: BlockLike = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.body = _as_block(self.body, self)

    def blocks(self) -> List[Block]:
        return [self.body]


@dataclass(eq=False)
class For(_Loop):
    """Counting loop.

    The facets may be given explicitly; any facet left out is recovered
    from the clause text by ``loop_facets``.
    """

    counter_var: Optional[str] = None
    start_value: Optional[str] = None
    end_value: Optional[str] = None
    step: Union[int, str, None] = None

    kind: ClassVar[str] = "for"

    def loop_facets(self, markers: MarkerConfig) -> ForClause:
        explicit = self.counter_var and self.start_value and self.end_value
        if explicit:
            clause = ForClause(
                counter=self.counter_var.strip(),
                start=self.start_value.strip(),
                end=self.end_value.strip(),
                raw=self.long_text(),
            )
        else:
            clause = parse_for_clause(
                self.long_text(), markers.pre_for, markers.post_for, markers.step_for
            )
            clause.counter = (self.counter_var or clause.counter).strip()
            clause.start = (self.start_value or clause.start).strip()
            clause.end = (self.end_value or clause.end).strip()
        if self.step is not None or explicit:
            clause.issues = [i for i in clause.issues if i[0] not in (
                ErrorCodes.MALFORMED_STEP, ErrorCodes.ZERO_STEP)]
            clause.step, issue = normalize_step(self.step)
            if issue is not None:
                clause.issues.append(issue)
        return clause


@dataclass(eq=False)
class While(_Loop):
    kind: ClassVar[str] = "while"


@dataclass(eq=False)
class Repeat(_Loop):
    kind: ClassVar[str] = "repeat"


@dataclass(eq=False)
class Forever(_Loop):
    kind: ClassVar[str] = "forever"


@dataclass(eq=False)
class Parallel(Element):
    threads: List[BlockLike] = field(default_factory=list)

    kind: ClassVar[str] = "parallel"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.threads = [_as_block(t, self) for t in self.threads]

    def blocks(self) -> List[Block]:
        return list(self.threads)


LOOP_KINDS = (For, While, Repeat, Forever)


# ═══════════════════════════════════════════════════════════════════════════
# ROUTINE SIGNATURES
# ═══════════════════════════════════════════════════════════════════════════

class Parameter(NamedTuple):
    name: str
    type: Optional[str] = None


class Signature(NamedTuple):
    name: str
    parameters: List[Parameter]
    result_type: Optional[str]


_SIGNATURE_RE = re.compile(
    r"^\s*(?P<head>[^(:]*?)\s*(?:\((?P<params>.*)\))?\s*(?::\s*(?P<result>.+?))?\s*$"
)
_PARAM_KEYWORDS = ("var", "const", "in", "out")


def _parse_parameter_group(group: str) -> List[Parameter]:
    words = group.split()
    if words and words[0].lower() in _PARAM_KEYWORDS:
        group = group.strip()[len(words[0]):]
    if ":" in group:
        names, type_name = group.split(":", 1)
        return [Parameter(n.strip(), type_name.strip() or None)
                for n in names.split(",") if n.strip()]
    params = []
    for item in split_expression_list(group):
        words = item.split()
        if len(words) > 1:
            params.append(Parameter(words[-1], " ".join(words[:-1])))
        elif words:
            params.append(Parameter(words[0], None))
    return params


def parse_signature(text: str) -> Signature:
    """Take a routine header line apart.

    Accepts ``name``, ``name(a, b)``, ``name(a: int; b, c: real): bool``
    and C-like ``int name(int a, double b)``.

    >>> parse_signature("fact(n: int): int")
    Signature(name='fact', parameters=[Parameter(name='n', type='int')], result_type='int')
    """
    match = _SIGNATURE_RE.match(text)
    if match is None:
        return Signature(text.strip(), [], None)
    head = match.group("head").split()
    name = head[-1] if head else ""
    result_type = match.group("result")
    if result_type is None and len(head) > 1:
        result_type = " ".join(head[:-1])
    parameters: List[Parameter] = []
    if match.group("params"):
        for group in split_expression_list(match.group("params"), ";"):
            parameters.extend(_parse_parameter_group(group))
    return Signature(name, parameters, result_type)


# ═══════════════════════════════════════════════════════════════════════════
# ROOT
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class Root(Element):
    """The routine: a program or a subroutine.

    Routine metadata not given explicitly is parsed from the first text
    line.  ``switch_text_comments`` is display state only; code generation
    never consults it.
    """

    children: BlockLike = None
    is_program: bool = True
    method_name: str = ""
    parameters: List[Parameter] = field(default_factory=list)
    result_type: Optional[str] = None
    switch_text_comments: bool = False

    kind: ClassVar[str] = "root"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.children = _as_block(self.children, self)
        self.parameters = [p if isinstance(p, Parameter) else Parameter(*p)
                           for p in self.parameters]
        if self.text and self.text[0].strip():
            signature = parse_signature(self.text[0])
            if not self.method_name:
                self.method_name = signature.name
            if not self.is_program:
                if not self.parameters:
                    self.parameters = signature.parameters
                if self.result_type is None:
                    self.result_type = signature.result_type
        if not self.method_name:
            self.method_name = "main" if self.is_program else "routine"

    def blocks(self) -> List[Block]:
        return [self.children]

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]

    @property
    def parameter_types(self) -> List[Optional[str]]:
        return [p.type for p in self.parameters]

    def get_var_names(self, markers: Optional[MarkerConfig] = None) -> List[str]:
        """Variable names in order of first appearance.

        Parameters come first, then For counters, assignment targets and
        input targets as met in a depth-first walk.
        """
        markers = markers or MarkerConfig()
        names: List[str] = []

        def add(name: str) -> None:
            if _IDENTIFIER_RE.match(name) and name not in names:
                names.append(name)

        for param in self.parameter_names:
            add(param)
        for element in walk(self.children):
            if isinstance(element, For):
                add(element.loop_facets(markers).counter)
            elif isinstance(element, Instruction):
                for line in element.text:
                    for target in _assigned_names(line, markers):
                        add(target)
        return names


def _assigned_names(line: str, markers: MarkerConfig) -> List[str]:
    stripped = line.strip()
    keyword = markers.input.strip()
    if keyword and stripped.startswith(keyword):
        rest = stripped[len(keyword):]
        if not rest or not rest[0].isalnum():
            return [_base_name(e) for e in split_expression_list(rest)]

    tokens = split_lexically(stripped, True)
    if not unify_operator_tokens(tokens, assignment_only=True):
        return []
    target = "".join(tokens[:tokens.index(CANONICAL["ASGN"])])
    return [_base_name(target)]


def _base_name(target: str) -> str:
    target = target.split("[")[0].split(":")[0].split(".")[0]
    words = target.split()
    return words[-1] if words else ""


def walk(block: Iterable[Element]) -> Iterator[Element]:
    """Yield the elements of *block* and their descendants, depth first."""
    for element in block:
        yield element
        for child_block in element.blocks():
            yield from walk(child_block)
