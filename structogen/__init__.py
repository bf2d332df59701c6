"""structogen: structured-diagram code export.

This package turns the element tree of a structured (Nassi-Shneiderman)
diagram into source text for one of several imperative target languages.

Submodules
----------
lexer
    ``split_lexically`` and the constant lexeme-highlighting table.

operators
    ``unify_operators`` / ``unify_operator_tokens``: canonical operator
    spellings for the intermediate language.

intermediate
    ``to_intermediate``: control-keyword stripping plus operator
    unification, one text line at a time.

splitter
    ``split_expression_list``: top-level splitting of value lists.

forclause
    ``parse_for_clause``: counting-loop clause parsing (parsimonious).

config
    ``Settings``: marker keywords and generator options (JSON).

elements
    The diagram element tree (``Instruction``, ``Alternative``, ``Case``,
    ``For``, ``While``, ``Repeat``, ``Forever``, ``Call``, ``Jump``,
    ``Parallel``, ``Block``, ``Root``).

codegen
    The backend-independent traversal engine (``CodeGenerator``) and the
    ``generate()`` convenience function.

backends
    Target-language capability objects (``bash``, ``ksh``, ``oberon``,
    ``pascal``).

loader
    S-expression diagram files.

Usage
-----
Command-line::

    python -m structogen generate algorithm.nsx --backend oberon
    python -m structogen intermediate "while (x < 3)"

Programmatic::

    from structogen import generate
    from structogen.elements import Root, Instruction

    root = Root(children=[Instruction(["y <- 1"])])
    print(generate(root, "bash").text)
"""

from __future__ import annotations

from structogen.codegen import CodeGenerator, GeneratedCode, generate

__version__: str = "0.3.0"
__all__: list[str] = [
    "__version__",
    "CodeGenerator",
    "GeneratedCode",
    "generate",
]
