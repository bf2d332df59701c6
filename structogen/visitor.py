"""
structogen/visitor.py
=====================

Visitor infrastructure for element-tree traversal.

Provides:
- ``ElementVisitor``: abstract base, one ``visit_X`` per element kind
- ``DepthFirstVisitor``: walks every descendant with ``enter``/``leave`` hooks
"""

from __future__ import annotations

import abc
from typing import Any

from structogen import elements as E

__all__ = [
    "ElementVisitor",
    "DepthFirstVisitor",
]


class ElementVisitor(abc.ABC):
    """Abstract base class for element visitors.

    Each ``visit_X`` method corresponds to an element kind.  The default
    implementations call ``generic_visit``, which does nothing.  Subclasses
    override the methods they care about.
    """

    def visit(self, element: E.Element) -> Any:
        """Dispatch to the appropriate visit method."""
        return element.accept(self)

    def visit_block(self, block: E.Block) -> Any:
        for element in block:
            self.visit(element)
        return None

    def generic_visit(self, element: E.Element) -> Any:
        return None

    def visit_instruction(self, element: E.Instruction) -> Any:
        return self.generic_visit(element)

    def visit_call(self, element: E.Call) -> Any:
        return self.generic_visit(element)

    def visit_jump(self, element: E.Jump) -> Any:
        return self.generic_visit(element)

    def visit_alternative(self, element: E.Alternative) -> Any:
        return self.generic_visit(element)

    def visit_case(self, element: E.Case) -> Any:
        return self.generic_visit(element)

    def visit_for(self, element: E.For) -> Any:
        return self.generic_visit(element)

    def visit_while(self, element: E.While) -> Any:
        return self.generic_visit(element)

    def visit_repeat(self, element: E.Repeat) -> Any:
        return self.generic_visit(element)

    def visit_forever(self, element: E.Forever) -> Any:
        return self.generic_visit(element)

    def visit_parallel(self, element: E.Parallel) -> Any:
        return self.generic_visit(element)

    def visit_root(self, element: E.Root) -> Any:
        return self.generic_visit(element)


class DepthFirstVisitor(ElementVisitor):
    """Visitor that traverses all descendants in depth-first order.

    Override ``enter`` / ``leave`` for pre/post-order processing.
    """

    def generic_visit(self, element: E.Element) -> Any:
        self.enter(element)
        for block in element.blocks():
            self.visit_block(block)
        self.leave(element)
        return None

    def enter(self, element: E.Element) -> None:
        pass

    def leave(self, element: E.Element) -> None:
        pass
