"""
structogen/loader.py
====================

S-expression diagram files (``.nsx``).

A diagram file holds one ``root`` form.  Every element form starts with its
kind symbol, followed by its text lines (strings), keyword options and
sub-forms::

    ; factorial
    (root "fact(n: int): int" :program false
      (comment "Computes n!")
      (instruction "result <- 1")
      (for "for i <- 1 to n"
        (instruction "result <- result * i"))
      (alternative "n < 0"
        (then (jump "exit 1"))
        (else))
      (case "op"
        (branch "1, 2" (call "add()"))
        (branch "%"))
      (parallel
        (thread (instruction "a <- 1"))
        (thread (instruction "b <- 2")))
      (jump "return result"))

Common options: ``(comment "..." ...)``, ``:as-comment t``.
``for`` additionally takes ``:counter``, ``:start``, ``:end`` and ``:step``;
``root`` takes ``:program``, ``:name``, ``:result-type``, ``:switched`` and
``(param NAME [TYPE])`` sub-forms.

Booleans are ``t`` / ``true`` and ``nil`` / ``false``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import sexpdata

from structogen import elements as E
from structogen.errors import DiagramError, DiagramSyntaxError, ErrorCodes

__all__ = [
    "load_diagram",
    "loads_diagram",
    "dumps_diagram",
]

logger = logging.getLogger(__name__)

_TRUE = {"t", "true", "yes"}
_FALSE = {"nil", "false", "no"}


# ═══════════════════════════════════════════════════════════════════════════
# READING
# ═══════════════════════════════════════════════════════════════════════════

def _is_symbol(obj: Any, name: str = None) -> bool:
    if not isinstance(obj, sexpdata.Symbol):
        return False
    return name is None or obj.value() == name


def _symbol_name(obj: Any) -> str:
    return obj.value() if isinstance(obj, sexpdata.Symbol) else str(obj)


def _as_bool(value: Any, where: str) -> bool:
    if isinstance(value, bool):
        return value
    if value == []:
        return False
    name = _symbol_name(value).lower()
    if name in _TRUE:
        return True
    if name in _FALSE:
        return False
    raise DiagramError(f"{where}: expected a boolean, got {name!r}",
                       code=ErrorCodes.BAD_ELEMENT_FORM)


class _Form:
    """One element form taken apart into texts, options and sub-forms."""

    def __init__(self, form: List[Any]) -> None:
        if not form or not _is_symbol(form[0]):
            raise DiagramError(f"element form must start with a kind symbol: {form!r}",
                               code=ErrorCodes.BAD_ELEMENT_FORM)
        self.kind = _symbol_name(form[0])
        self.texts: List[str] = []
        self.options: Dict[str, Any] = {}
        self.subforms: List[List[Any]] = []
        items = form[1:]
        i = 0
        while i < len(items):
            item = items[i]
            if _is_symbol(item) and _symbol_name(item).startswith(":"):
                if i + 1 >= len(items):
                    raise DiagramError(f"{self.kind}: option {_symbol_name(item)} lacks a value",
                                       code=ErrorCodes.BAD_ELEMENT_FORM)
                self.options[_symbol_name(item)[1:]] = items[i + 1]
                i += 2
                continue
            if isinstance(item, list):
                self.subforms.append(item)
            elif isinstance(item, str) and not isinstance(item, sexpdata.Symbol):
                self.texts.extend(item.split("\n"))
            elif isinstance(item, (int, float)) and not isinstance(item, bool):
                self.texts.append(str(item))
            else:
                raise DiagramError(f"{self.kind}: unexpected item {item!r}",
                                   code=ErrorCodes.BAD_ELEMENT_FORM)
            i += 1

    def take(self, name: str) -> List[List[Any]]:
        """Remove and return the sub-forms headed by symbol *name*."""
        taken = [f for f in self.subforms if f and _is_symbol(f[0], name)]
        self.subforms = [f for f in self.subforms if not (f and _is_symbol(f[0], name))]
        return taken

    def common(self) -> Dict[str, Any]:
        comment: List[str] = []
        for form in self.take("comment"):
            comment.extend(_Form(form).texts)
        kwargs: Dict[str, Any] = {"text": self.texts, "comment": comment}
        if "as-comment" in self.options:
            kwargs["render_as_comment"] = _as_bool(self.options["as-comment"], self.kind)
        return kwargs

    def children(self) -> List[E.Element]:
        return [_build(f) for f in self.subforms]

    def option_text(self, name: str) -> Union[str, None]:
        value = self.options.get(name)
        if value is None:
            return None
        if isinstance(value, sexpdata.Symbol):
            return value.value()
        return str(value)


def _block(form: List[Any]) -> List[E.Element]:
    return _Form(form).children()


def _build_simple(cls: type) -> Callable[[_Form], E.Element]:
    def build(f: _Form) -> E.Element:
        kwargs = f.common()
        if f.subforms:
            raise DiagramError(f"{f.kind} element cannot have children",
                               code=ErrorCodes.BAD_ELEMENT_FORM)
        return cls(**kwargs)
    return build


def _build_loop(cls: type) -> Callable[[_Form], E.Element]:
    def build(f: _Form) -> E.Element:
        kwargs = f.common()
        return cls(body=f.children(), **kwargs)
    return build


def _build_for(f: _Form) -> E.Element:
    kwargs = f.common()
    step: Any = f.options.get("step")
    if isinstance(step, sexpdata.Symbol):
        step = step.value()
    return E.For(
        body=f.children(),
        counter_var=f.option_text("counter"),
        start_value=f.option_text("start"),
        end_value=f.option_text("end"),
        step=step,
        **kwargs,
    )


def _build_alternative(f: _Form) -> E.Element:
    kwargs = f.common()
    q_true = [e for form in f.take("then") for e in _block(form)]
    q_false = [e for form in f.take("else") for e in _block(form)]
    if f.subforms:
        raise DiagramError("alternative children must be inside (then ...) or (else ...)",
                           code=ErrorCodes.BAD_ELEMENT_FORM)
    return E.Alternative(q_true=q_true, q_false=q_false, **kwargs)


def _build_case(f: _Form) -> E.Element:
    kwargs = f.common()
    branches = []
    for form in f.take("branch"):
        branch = _Form(form)
        if len(branch.texts) != 1:
            raise DiagramError("case branch needs exactly one label string",
                               code=ErrorCodes.BAD_ELEMENT_FORM)
        kwargs["text"].append(branch.texts[0])
        branches.append(branch.children())
    if f.subforms:
        raise DiagramError("case children must be (branch LABEL ...) forms",
                           code=ErrorCodes.BAD_ELEMENT_FORM)
    return E.Case(branches=branches, **kwargs)


def _build_parallel(f: _Form) -> E.Element:
    kwargs = f.common()
    threads = [_block(form) for form in f.take("thread")]
    if f.subforms:
        raise DiagramError("parallel children must be (thread ...) forms",
                           code=ErrorCodes.BAD_ELEMENT_FORM)
    return E.Parallel(threads=threads, **kwargs)


def _build_root(f: _Form) -> E.Element:
    kwargs = f.common()
    parameters = []
    for form in f.take("param"):
        param = _Form(form)
        if not 1 <= len(param.texts) <= 2:
            raise DiagramError("param needs a name and an optional type",
                               code=ErrorCodes.BAD_ELEMENT_FORM)
        parameters.append(E.Parameter(*param.texts))
    options = f.options
    return E.Root(
        children=f.children(),
        is_program=_as_bool(options.get("program", True), "root"),
        method_name=f.option_text("name") or "",
        parameters=parameters,
        result_type=f.option_text("result-type"),
        switch_text_comments=_as_bool(options.get("switched", False), "root"),
        **kwargs,
    )


_BUILDERS: Dict[str, Callable[[_Form], E.Element]] = {
    "instruction": _build_simple(E.Instruction),
    "call": _build_simple(E.Call),
    "jump": _build_simple(E.Jump),
    "alternative": _build_alternative,
    "case": _build_case,
    "for": _build_for,
    "while": _build_loop(E.While),
    "repeat": _build_loop(E.Repeat),
    "forever": _build_loop(E.Forever),
    "parallel": _build_parallel,
    "root": _build_root,
}


def _build(form: Any) -> E.Element:
    if not isinstance(form, list):
        raise DiagramError(f"expected an element form, got {form!r}",
                           code=ErrorCodes.BAD_ELEMENT_FORM)
    parsed = _Form(form)
    builder = _BUILDERS.get(parsed.kind)
    if builder is None:
        raise DiagramError(f"unknown element kind {parsed.kind!r}",
                           code=ErrorCodes.UNKNOWN_ELEMENT,
                           hint=f"known kinds: {', '.join(sorted(_BUILDERS))}")
    return builder(parsed)


def loads_diagram(text: str) -> E.Root:
    """Parse diagram source text into a ``Root``."""
    try:
        parsed = sexpdata.loads(text, nil=None, true=None, false=None)
    except Exception as e:
        raise DiagramSyntaxError(f"malformed S-expression: {e}") from e
    if not isinstance(parsed, list) or not parsed or not _is_symbol(parsed[0], "root"):
        raise DiagramError("a diagram must be a single (root ...) form",
                           code=ErrorCodes.BAD_ELEMENT_FORM)
    root = _build(parsed)
    logger.debug("Loaded diagram %r", root.method_name)
    return root


def load_diagram(path: Union[str, Path]) -> E.Root:
    """Read a diagram file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DiagramError(f"cannot read diagram file {path}: {e}") from e
    return loads_diagram(text)


# ═══════════════════════════════════════════════════════════════════════════
# WRITING
# ═══════════════════════════════════════════════════════════════════════════

def _atom(text: str) -> str:
    return sexpdata.dumps(text)


def _head(element: E.Element) -> List[str]:
    parts = [element.kind]
    texts = element.text
    if isinstance(element, E.Case):
        texts = element.text[:1]
    parts.extend(_atom(line) for line in texts)
    if element.render_as_comment:
        parts.append(":as-comment t")
    return parts


def _dump(element: E.Element, depth: int, out: List[str]) -> None:
    pad = "  " * depth
    parts = _head(element)
    if isinstance(element, E.For):
        for option, value in (("counter", element.counter_var), ("start", element.start_value),
                              ("end", element.end_value)):
            if value is not None:
                parts.append(f":{option} {_atom(value)}")
        if element.step is not None:
            step = element.step
            parts.append(f":step {step if isinstance(step, int) else _atom(step)}")
    signature = None
    if isinstance(element, E.Root):
        parts.append(":program " + ("t" if element.is_program else "nil"))
        if element.switch_text_comments:
            parts.append(":switched t")
        # only what the signature line does not already imply
        if element.text and element.text[0].strip():
            signature = E.parse_signature(element.text[0])
        if signature is None or signature.name != element.method_name:
            parts.append(f":name {_atom(element.method_name)}")
        if element.result_type and (signature is None or element.is_program
                                    or signature.result_type != element.result_type):
            parts.append(f":result-type {_atom(element.result_type)}")

    out.append(pad + "(" + " ".join(parts))
    inner = "  " * (depth + 1)
    if element.comment:
        out.append(inner + "(comment " + " ".join(_atom(c) for c in element.comment) + ")")
    if isinstance(element, E.Root) and element.parameters and (
            signature is None or element.is_program
            or list(signature.parameters) != list(element.parameters)):
        for param in element.parameters:
            texts = [param.name] + ([param.type] if param.type else [])
            out.append(inner + "(param " + " ".join(_atom(t) for t in texts) + ")")

    if isinstance(element, E.Alternative):
        for name, block in (("then", element.q_true), ("else", element.q_false)):
            out.append(inner + "(" + name)
            for child in block:
                _dump(child, depth + 2, out)
            out[-1] += ")"
    elif isinstance(element, E.Case):
        for label, branch in zip(element.labels, element.branches):
            out.append(inner + "(branch " + _atom(label))
            for child in branch:
                _dump(child, depth + 2, out)
            out[-1] += ")"
    elif isinstance(element, E.Parallel):
        for thread in element.threads:
            out.append(inner + "(thread")
            for child in thread:
                _dump(child, depth + 2, out)
            out[-1] += ")"
    else:
        for block in element.blocks():
            for child in block:
                _dump(child, depth + 1, out)
    out[-1] += ")"


def dumps_diagram(root: E.Root) -> str:
    """Serialise *root* in the canonical diagram file form."""
    out: List[str] = []
    _dump(root, 0, out)
    return "\n".join(out) + "\n"
