"""
structogen/codegen.py
=====================

Backend-independent code generation.

``CodeGenerator`` walks the element tree of one routine depth first and
dispatches every element to a kind-specific render step.  Everything that
differs between target languages (indentation unit, comment delimiters,
I/O templates, keyword templates per construct, type names, jump syntax,
the routine brackets) is looked up on a ``Backend`` object
(``structogen.backends``), so control-flow handling exists exactly once.

Pipeline per text line
----------------------
1. ``to_intermediate`` strips control keywords and unifies operators.
2. Input / output statements are recognised by the configured keywords and
   rendered through the backend's I/O templates, one statement per value
   where the backend asks for it.
3. ``Backend.transform_assignment`` and ``Backend.transform`` map the
   canonical tokens onto the target spelling.

Routine brackets
----------------
``generate()`` runs the five backend hooks in order::

    generate_header    signature line, shebang, module line
    generate_preamble  declarations (variables, labels)
    generate_body      the traversal of the root's children
    generate_result    value-returning epilogue
    generate_footer    closing line(s)

Recoveries (bad loop step, unknown jump keyword, unmapped type, ...) never
stop generation.  They are logged and collected in
``GeneratedCode.diagnostics``.
"""

from __future__ import annotations

import contextlib
import logging
import re
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from structogen import elements as E
from structogen.backends import get_backend
from structogen.config import MarkerConfig, Settings
from structogen.errors import Diagnostic, DiagnosticCollector, ErrorCode, ErrorCodes
from structogen.intermediate import to_intermediate
from structogen.splitter import split_expression_list
from structogen.visitor import DepthFirstVisitor, ElementVisitor

if TYPE_CHECKING:
    from structogen.backends.base import Backend

__all__ = [
    "generate",
    "classify_jump",
    "CodeEmitter",
    "CodeGenerator",
    "GeneratedCode",
    "RoutineInfo",
]

logger = logging.getLogger(__name__)

Template = Sequence[Union[str, Tuple[int, str]]]


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Append-only line buffer with indentation management."""

    def __init__(self, indent_str: str = "  ", base_indent: str = "") -> None:
        self._lines: List[str] = []
        self._indent_str = indent_str
        self._base_indent = base_indent
        self._indent_level = 0

    @property
    def level(self) -> int:
        return self._indent_level

    @level.setter
    def level(self, value: int) -> None:
        self._indent_level = max(0, value)

    def prefix(self, extra: int = 0) -> str:
        return self._base_indent + self._indent_str * (self._indent_level + extra)

    def emit(self, code: str, extra: int = 0) -> None:
        """Emit a line of code at the current indentation (plus *extra*)."""
        if code.strip():
            self._lines.append(self.prefix(extra) + code)
        else:
            self._lines.append("")

    def emit_blank(self, count: int = 1) -> None:
        self._lines.extend([""] * count)

    def emit_block_comment(
        self, lines: Sequence[str], left: str, middle: str, right: str, extra: int = 0
    ) -> None:
        """Emit a multi-line comment: *left*, *middle*-prefixed lines, *right*."""
        if not lines:
            return
        self.emit(left, extra)
        for line in lines:
            self.emit((middle + line).rstrip() or middle.strip(), extra)
        self.emit(right, extra)

    def indent(self, count: int = 1) -> None:
        self._indent_level += count

    def dedent(self, count: int = 1) -> None:
        self._indent_level = max(0, self._indent_level - count)

    @contextlib.contextmanager
    def indented(self, count: int = 1) -> Iterator["CodeEmitter"]:
        self.indent(count)
        try:
            yield self
        finally:
            self.dedent(count)

    def get_lines(self) -> List[str]:
        return list(self._lines)

    def get_code(self) -> str:
        return "\n".join(self._lines)


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED CODE CONTAINER
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class GeneratedCode:
    """Generated source text and the metadata an export layer needs."""

    lines: List[str]
    backend: str
    extension: str
    title: str
    description: str
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def write_to_file(self, path: str) -> None:
        """Write the generated code to a file."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.text)
            f.write("\n")


# ═══════════════════════════════════════════════════════════════════════════
# ROUTINE ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════

def classify_jump(line: str, markers: MarkerConfig) -> Tuple[Optional[str], str]:
    """Return ``(kind, argument)`` for one jump text line.

    *kind* is ``"leave"``, ``"return"``, ``"exit"`` or ``None`` for an
    unrecognised keyword.  An empty line is a ``leave``.
    """
    stripped = line.strip()
    if not stripped:
        return "leave", ""
    for kind, keyword in markers.jump_keywords().items():
        if keyword and re.match(re.escape(keyword) + r"(\W|$)", stripped):
            return kind, stripped[len(keyword):].strip()
    return None, stripped


def _leave_levels(argument: str) -> int:
    argument = argument.strip()
    if argument.isdigit() and int(argument) > 0:
        return int(argument)
    return 1


@dataclass
class RoutineInfo:
    """What the routine brackets need to know about the body."""

    name: str
    is_program: bool
    parameters: List[E.Parameter]
    result_type: Optional[str]
    var_names: List[str]
    returns: bool = False
    always_returns: bool = False
    result_var: Optional[str] = None
    is_function_name_set: bool = False
    labels: Dict[int, int] = field(default_factory=dict)

    @property
    def is_result_set(self) -> bool:
        return self.result_var is not None

    @property
    def is_function(self) -> bool:
        return (self.result_type is not None or self.returns
                or self.is_result_set or self.is_function_name_set)

    @property
    def local_names(self) -> List[str]:
        params = {p.name for p in self.parameters}
        return [v for v in self.var_names if v not in params]


class _JumpAnalyzer(DepthFirstVisitor):
    """Finds value returns and assigns labels to loops left by ``leave``."""

    def __init__(self, markers: MarkerConfig, label_leaves: bool) -> None:
        self.markers = markers
        self.label_leaves = label_leaves
        self.loops: List[E.Element] = []
        self.labels: Dict[int, int] = {}
        self.returns = False

    def enter(self, element: E.Element) -> None:
        if isinstance(element, E.LOOP_KINDS):
            self.loops.append(element)

    def leave(self, element: E.Element) -> None:
        if isinstance(element, E.LOOP_KINDS):
            self.loops.pop()

    def visit(self, element: E.Element) -> Any:
        # Commented-out subtrees hold no live jumps.
        if element.render_as_comment:
            return None
        return super().visit(element)

    def visit_jump(self, element: E.Jump) -> Any:
        for line in element.text or [""]:
            kind, argument = classify_jump(line, self.markers)
            if kind == "return" and argument:
                self.returns = True
            elif kind == "leave" and self.label_leaves and self.loops:
                levels = min(_leave_levels(argument), len(self.loops))
                target = self.loops[-levels]
                self.labels.setdefault(id(target), len(self.labels) + 1)
        return None


def analyze_routine(root: E.Root, markers: MarkerConfig, label_leaves: bool) -> RoutineInfo:
    analyzer = _JumpAnalyzer(markers, label_leaves)
    analyzer.visit_block(root.children)
    var_names = root.get_var_names(markers)
    info = RoutineInfo(
        name=root.method_name,
        is_program=root.is_program,
        parameters=list(root.parameters),
        result_type=root.result_type,
        var_names=var_names,
        returns=analyzer.returns,
        labels=analyzer.labels,
    )
    if not root.is_program:
        for name in var_names:
            if name.lower() == "result":
                info.result_var = name
        info.is_function_name_set = root.method_name in var_names
    if root.children:
        last = root.children[len(root.children) - 1]
        if isinstance(last, E.Jump) and last.text:
            info.always_returns = classify_jump(last.text[-1], markers)[0] == "return"
    return info


# ═══════════════════════════════════════════════════════════════════════════
# CODE GENERATOR
# ═══════════════════════════════════════════════════════════════════════════

def _describe(element: Optional[E.Element]) -> str:
    if element is None:
        return ""
    head = element.text[0].strip() if element.text else ""
    return f"{element.kind} {head!r}" if head else element.kind


class CodeGenerator(ElementVisitor):
    """Renders an element tree through one backend.

    A generator instance owns its output buffer and diagnostics; use a
    fresh one per routine.
    """

    def __init__(self, backend: "Backend", settings: Optional[Settings] = None) -> None:
        self.backend = backend
        self.settings = settings or Settings()
        self.markers = self.settings.markers
        self.options = self.settings.options
        self.emitter = CodeEmitter(backend.indent_unit, self.options.indent)
        self.diagnostics = DiagnosticCollector()
        self.info: Optional[RoutineInfo] = None
        self._loops: List[E.Element] = []
        self._labels: Dict[int, int] = {}
        # loops whose body is being emitted outside of them
        self._copies: List[E.Element] = []

    # --- entry points ---

    def generate(self, root: E.Root) -> GeneratedCode:
        """Generate the complete routine *root*."""
        backend = self.backend
        self.info = analyze_routine(root, self.markers, not backend.supports_simple_break)
        self._labels = dict(self.info.labels)
        logger.debug("Generating %s routine %r", backend.name, self.info.name)

        base_level = self.emitter.level
        backend.generate_header(self, root, self.info)
        backend.generate_preamble(self, root, self.info)
        backend.generate_body(self, root, self.info)
        backend.generate_result(self, root, self.info)
        self.emitter.level = base_level
        backend.generate_footer(self, root, self.info)
        return self._result()

    def render(self, element: E.Element) -> List[str]:
        """Render a single element (and its descendants) without brackets."""
        analyzer = _JumpAnalyzer(self.markers, not self.backend.supports_simple_break)
        analyzer.visit(element)
        self._labels.update(analyzer.labels)
        self.visit(element)
        return self.emitter.get_lines()

    def _result(self) -> GeneratedCode:
        backend = self.backend
        return GeneratedCode(
            lines=self.emitter.get_lines(),
            backend=backend.name,
            extension=backend.extensions[0],
            title=backend.title,
            description=backend.description,
            diagnostics=list(self.diagnostics),
        )

    # --- helpers for render steps and backend hooks ---

    def emit(self, code: str, extra: int = 0) -> None:
        self.emitter.emit(code, extra)

    def emit_blank(self) -> None:
        self.emitter.emit_blank()

    def emit_comment(self, text: str, extra: int = 0) -> None:
        self.emitter.emit(self.backend.comment(text), extra)

    def emit_comments(self, element: E.Element) -> None:
        if self.options.include_comments:
            for line in element.comment:
                if line.strip():
                    self.emit_comment(line.strip())

    def emit_template(self, template: Template, extra: int = 0, **values: str) -> None:
        for item in template:
            depth, text = item if isinstance(item, tuple) else (0, item)
            self.emitter.emit(text.format(**values), extra + depth)

    def report(self, code: ErrorCode, message: str, element: Optional[E.Element] = None) -> None:
        where = _describe(element)
        logger.warning("%s: %s [%s]", where or "<routine>", message, code)
        self.diagnostics.report(code, message, where)

    def map_type(self, name: Optional[str], default: Optional[str] = None) -> str:
        """Backend type name for *name*; placeholders for missing or unknown types."""
        if not name or not name.strip():
            return default if default is not None else self.backend.UNKNOWN_TYPE
        mapped = self.backend.lookup_type(name)
        if mapped is None:
            self.report(ErrorCodes.UNMAPPED_TYPE, f"no {self.backend.name} type for {name.strip()!r}")
            return f"{name.strip()} {self.backend.UNKNOWN_TYPE}"
        return mapped

    # --- line transformation ---

    def convert(self, interm: str) -> str:
        backend = self.backend
        line = backend.transform_assignment(" " + interm.strip() + " ")
        return backend.transform(line).strip()

    def transform(self, text: str) -> str:
        """Expression or condition text -> target spelling (no I/O handling)."""
        if self.options.no_conversion:
            return text.strip()
        return self.convert(to_intermediate(text, self.markers))

    def _split_io(self, line: str) -> Tuple[Optional[str], str]:
        for kind, keyword in (("input", self.markers.input), ("output", self.markers.output)):
            keyword = keyword.strip()
            if not keyword or not line.startswith(keyword):
                continue
            rest = line[len(keyword):]
            if not rest or not (rest[0].isalnum() or rest[0] == "_") or not keyword[-1].isalnum():
                return kind, rest.strip()
        return None, line

    def statement_lines(self, text: str) -> List[str]:
        """Target statements for one instruction text line."""
        if not text.strip():
            return []
        backend = self.backend
        if self.options.no_conversion:
            return [text.strip()]
        interm = to_intermediate(text, self.markers).strip()
        kind, rest = self._split_io(interm)
        if kind == "input":
            targets = [self.convert(rest)] if rest else []
            return backend.render_input(self, targets)
        if kind == "output":
            values = split_expression_list(rest) if backend.split_output_values else [rest]
            return backend.render_output(self, [self.convert(v) for v in values if v])
        return [backend.statement(self.convert(interm))]

    # --- render steps ---

    def visit_block(self, block: E.Block) -> Any:
        for element in block:
            self.visit(element)
        return None

    def _as_comment(self, element: E.Element) -> bool:
        simple = isinstance(element, (E.Instruction, E.Call, E.Jump))
        if not (element.render_as_comment or (simple and self.options.instructions_as_comments)):
            return False
        for line in element.full_text():
            if line.strip():
                self.emit_comment(line.strip())
        return True

    def visit(self, element: E.Element) -> Any:
        if self._as_comment(element):
            return None
        return super().visit(element)

    def visit_instruction(self, element: E.Instruction) -> Any:
        self.emit_comments(element)
        for line in element.text:
            for statement in self.statement_lines(line):
                self.emit(statement)
        return None

    def visit_call(self, element: E.Call) -> Any:
        self.emit_comments(element)
        for line in element.text:
            if line.strip():
                self.emit(self.backend.statement(self.transform(line)))
        return None

    def visit_jump(self, element: E.Jump) -> Any:
        self.emit_comments(element)
        backend = self.backend
        for line in element.text or [""]:
            if self.options.no_conversion:
                if line.strip():
                    self.emit(line.strip())
                continue
            kind, argument = classify_jump(line, self.markers)
            if kind == "leave":
                self._emit_leave(element, argument)
            elif kind == "return":
                self.emit(backend.render_return(self.transform(argument) if argument else ""))
            elif kind == "exit":
                self.emit(backend.render_exit(self.transform(argument) if argument else ""))
            else:
                self.report(ErrorCodes.UNRECOGNIZED_JUMP,
                            f"unrecognised jump {argument!r} emitted as plain statement", element)
                for statement in self.statement_lines(line):
                    self.emit(statement)
        return None

    def _emit_leave(self, element: E.Jump, argument: str) -> None:
        backend = self.backend
        levels = _leave_levels(argument)
        if not self._loops:
            self.report(ErrorCodes.LEAVE_OUTSIDE_LOOP, "leave outside of any loop", element)
            self.emit_comment(f"FIXME: leave {argument}".rstrip())
            return
        if levels > len(self._loops):
            self.report(ErrorCodes.LEAVE_OUTSIDE_LOOP,
                        f"cannot leave {levels} loops, only {len(self._loops)} enclosing", element)
            levels = len(self._loops)
        if any(loop in self._copies for loop in self._loops[-levels:]):
            self.report(ErrorCodes.UNSUPPORTED_LEAVE,
                        "leave in the copy of a loop body placed before the loop", element)
            self.emit_comment(f"TODO: leave {levels} loop(s) here, skipping the loop below")
            return
        if backend.supports_simple_break:
            statement = backend.render_break(levels)
            if statement is None:
                self.report(ErrorCodes.UNSUPPORTED_LEAVE,
                            f"{backend.name} cannot leave {levels} loops at once", element)
                self.emit_comment(f"TODO: leave {levels} loops here")
                statement = backend.render_break(1)
            self.emit(statement)
        else:
            target = self._loops[-levels]
            label = self._labels.setdefault(id(target), len(self._labels) + 1)
            self.emit(backend.render_goto(label))

    def _loop_body(self, element: E.Element, body: E.Block, extra: int = 1) -> None:
        self._loops.append(element)
        try:
            with self.emitter.indented(extra):
                self.visit_block(body)
        finally:
            self._loops.pop()

    def _close_label(self, element: E.Element) -> None:
        if not self.backend.supports_simple_break and id(element) in self._labels:
            self.emit(self.backend.render_label(self._labels[id(element)]))

    def visit_alternative(self, element: E.Alternative) -> Any:
        backend = self.backend
        self.emit_comments(element)
        self.emit_template(backend.IF_OPEN, cond=self.transform(element.long_text()))
        with self.emitter.indented():
            self.visit_block(element.q_true)
        if element.q_false:
            self.emit_template(backend.IF_ELSE)
            with self.emitter.indented():
                self.visit_block(element.q_false)
        self.emit_template(backend.IF_CLOSE)
        return None

    def visit_case(self, element: E.Case) -> Any:
        backend = self.backend
        self.emit_comments(element)
        self.emit_template(backend.CASE_OPEN, selector=self.transform(element.selector))
        for i, (label, branch) in enumerate(zip(element.labels[:-1], element.branches[:-1])):
            patterns = [self.transform(p) for p in split_expression_list(label)]
            template = backend.CASE_LABEL if i == 0 else backend.CASE_LABEL_NEXT
            self.emit_template(template, 1, labels=backend.case_pattern_separator.join(patterns))
            with self.emitter.indented(backend.case_body_depth):
                self.visit_block(branch)
            self.emit_template(backend.CASE_BRANCH_CLOSE, 1)
        if element.has_default:
            self.emit_template(backend.CASE_DEFAULT, 1)
            with self.emitter.indented(backend.case_body_depth):
                self.visit_block(element.branches[-1])
            self.emit_template(backend.CASE_DEFAULT_CLOSE, 1)
        self.emit_template(backend.CASE_CLOSE)
        return None

    def visit_for(self, element: E.For) -> Any:
        backend = self.backend
        clause = element.loop_facets(self.markers)
        parsed = True
        for code, message in clause.issues:
            self.report(code, message, element)
            parsed = parsed and code != ErrorCodes.MALFORMED_FOR_CLAUSE
        self.emit_comments(element)
        if parsed:
            start, end = self.transform(clause.start), self.transform(clause.end)
        else:
            start, end = clause.start, clause.end
        values = dict(counter=clause.counter, start=start, end=end, step=str(clause.step))
        self.emit_template(backend.for_header(clause.step), **values)
        self._loop_body(element, element.body)
        self.emit_template(backend.for_footer(clause.step), **values)
        self._close_label(element)
        return None

    def visit_while(self, element: E.While) -> Any:
        backend = self.backend
        self.emit_comments(element)
        self.emit_template(backend.WHILE_OPEN, cond=self.transform(element.long_text()))
        self._loop_body(element, element.body)
        self.emit_template(backend.WHILE_CLOSE)
        self._close_label(element)
        return None

    def visit_repeat(self, element: E.Repeat) -> Any:
        backend = self.backend
        self.emit_comments(element)
        cond = self.transform(element.long_text())
        if backend.repeat_duplicates_body:
            self.emit_comment("NOTE: This is an automatically inserted copy of the loop body below.")
            self._copies.append(element)
            try:
                self._loop_body(element, element.body, extra=0)
            finally:
                self._copies.pop()
        self.emit_template(backend.REPEAT_OPEN, cond=cond)
        self._loop_body(element, element.body)
        self.emit_template(backend.REPEAT_CLOSE, cond=cond)
        self._close_label(element)
        return None

    def visit_forever(self, element: E.Forever) -> Any:
        backend = self.backend
        self.emit_comments(element)
        self.emit_template(backend.FOREVER_OPEN)
        self._loop_body(element, element.body)
        self.emit_template(backend.FOREVER_CLOSE)
        self._close_label(element)
        return None

    def visit_parallel(self, element: E.Parallel) -> Any:
        backend = self.backend
        self.emit_comments(element)
        rule = "=" * 58
        self.emit_comment(rule)
        self.emit_comment(" START PARALLEL SECTION ".center(58, "="))
        self.emit_comment(rule)
        self.emit_comment("TODO: add the necessary code to run the threads concurrently")
        self.emit_template(backend.PARALLEL_OPEN)
        for i, thread in enumerate(element.threads):
            self.emit_comment(f"----------------- START THREAD {i} -----------------", 1)
            self.emit_template(backend.THREAD_OPEN, 1)
            with self.emitter.indented(2):
                self.visit_block(thread)
            self.emit_template(backend.THREAD_CLOSE, 1)
            self.emit_comment(f"------------------ END THREAD {i} ------------------", 1)
        self.emit_template(backend.PARALLEL_CLOSE)
        self.emit_comment(rule)
        self.emit_comment(" END PARALLEL SECTION ".center(58, "="))
        self.emit_comment(rule)
        return None

    def visit_root(self, element: E.Root) -> Any:
        # A nested routine is rendered as its body.
        self.visit_block(element.children)
        return None


def generate(
    root: E.Root,
    backend: Union[str, "Backend"] = "bash",
    settings: Optional[Settings] = None,
) -> GeneratedCode:
    """Generate source text for *root* with the named (or given) backend."""
    if isinstance(backend, str):
        backend = get_backend(backend)
    return CodeGenerator(backend, settings).generate(root)
