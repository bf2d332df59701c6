#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
structogen/__main__.py
======================

Command-line interface of the structured-diagram code exporter.

Usage
-----
    python -m structogen <command> [options] ...

Commands
--------
    generate        Export a diagram file (.nsx) as source code
    backends        List the available target languages
    tokens          Show the lexemes of a text line
    intermediate    Show the intermediate form of a text line
    dump-ast        Load a diagram file and dump its element tree
    dump-sexp       Load a diagram file and print its canonical form

Pipeline
--------
    .nsx diagram
        │
        ▼
    ┌──────────┐
    │  Loader   │   sexpdata → element tree
    └────┬─────┘
         │
         ▼
    ┌──────────────┐
    │  Code         │   element tree → backend templates
    │  Generator    │   (bash, ksh, oberon, pascal)
    └────┬─────────┘
         │
         ▼
    algorithm.sh / .Mod / .pas

Exit codes: 0 success, 1 user error (bad input, settings or backend),
2 internal error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import textwrap
import traceback
from typing import Any, List, Optional, Sequence, TextIO, Tuple

from structogen import __version__

__description__ = "structogen: structured-diagram code export"

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# LAZY IMPORTS (avoid the parser libraries for --help)
# ═══════════════════════════════════════════════════════════════════════════

def _import_loader():
    from structogen.loader import dumps_diagram, load_diagram, loads_diagram
    return load_diagram, loads_diagram, dumps_diagram


def _import_codegen():
    from structogen.codegen import CodeGenerator
    return CodeGenerator


def _import_backends():
    from structogen.backends import BACKENDS, available_backends, get_backend
    return BACKENDS, available_backends, get_backend


# ═══════════════════════════════════════════════════════════════════════════
# TERMINAL COLORS
# ═══════════════════════════════════════════════════════════════════════════

class _Colors:
    """ANSI color codes, disabled when not writing to a TTY."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _code(self, code: str) -> str:
        return code if self.enabled else ""

    @property
    def RESET(self) -> str:
        return self._code("\033[0m")

    @property
    def BOLD(self) -> str:
        return self._code("\033[1m")

    @property
    def DIM(self) -> str:
        return self._code("\033[2m")

    @property
    def RED(self) -> str:
        return self._code("\033[31m")

    @property
    def GREEN(self) -> str:
        return self._code("\033[32m")

    @property
    def YELLOW(self) -> str:
        return self._code("\033[33m")

    @property
    def MAGENTA(self) -> str:
        return self._code("\033[35m")

    @property
    def CYAN(self) -> str:
        return self._code("\033[36m")


def _get_colors(stream: TextIO = sys.stderr) -> _Colors:
    """Get color codes appropriate for the given stream."""
    try:
        is_tty = hasattr(stream, "isatty") and stream.isatty()
    except ValueError:
        is_tty = False
    return _Colors(enabled=is_tty and os.environ.get("NO_COLOR") is None)


# ═══════════════════════════════════════════════════════════════════════════
# DIAGNOSTIC FORMATTER
# ═══════════════════════════════════════════════════════════════════════════

class DiagnosticFormatter:
    """Format diagnostics for terminal output.

    Produces GCC/Clang-style messages:

        fact.nsx: for 'for i <- 1 to n by x': warning: malformed step 'x' [SG-4001]
    """

    def __init__(self, colors: _Colors, stream: Optional[TextIO] = None) -> None:
        self.colors = colors
        self.stream = stream if stream is not None else sys.stderr
        self._error_count = 0
        self._warning_count = 0
        self._note_count = 0

    def error(self, message: str, location: Optional[str] = None, hint: str = "") -> None:
        self._error_count += 1
        c = self.colors
        self.stream.write(
            f"{c.BOLD}{self._prefix(location)}{c.RED}error:{c.RESET}{c.BOLD} {message}{c.RESET}\n"
        )
        if hint:
            self.note(hint, location)

    def warning(self, message: str, location: Optional[str] = None) -> None:
        self._warning_count += 1
        c = self.colors
        self.stream.write(
            f"{c.BOLD}{self._prefix(location)}{c.MAGENTA}warning:{c.RESET}{c.BOLD} {message}{c.RESET}\n"
        )

    def note(self, message: str, location: Optional[str] = None) -> None:
        self._note_count += 1
        c = self.colors
        self.stream.write(f"{c.BOLD}{self._prefix(location)}{c.CYAN}note:{c.RESET} {message}\n")

    def report(self, exc: Any, location: Optional[str] = None) -> None:
        """Emit a ``StructogenError`` as an error with its code and hint."""
        self.error(f"{exc.message} [{exc.code}]", location, exc.hint)

    def diagnostic(self, diag: Any, location: Optional[str] = None) -> None:
        """Emit a recorded generation ``Diagnostic``."""
        where = f"{location}: {diag.element}" if location and diag.element else (location or diag.element)
        message = f"{diag.message} [{diag.code}]"
        if diag.severity.is_error():
            self.error(message, where)
        else:
            self.warning(message, where)

    def summary(self) -> None:
        parts = []
        c = self.colors
        if self._error_count:
            parts.append(f"{c.RED}{self._error_count} error(s){c.RESET}")
        if self._warning_count:
            parts.append(f"{c.MAGENTA}{self._warning_count} warning(s){c.RESET}")
        if parts:
            self.stream.write(", ".join(parts) + " generated.\n")

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @staticmethod
    def _prefix(location: Optional[str]) -> str:
        return f"{location}: " if location else ""


# ═══════════════════════════════════════════════════════════════════════════
# ELEMENT TREE DUMPER
# ═══════════════════════════════════════════════════════════════════════════

class TreeDumper:
    """Dump an element tree in a human-readable indented form."""

    def __init__(self, stream: Optional[TextIO] = None, colors: Optional[_Colors] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.colors = colors or _Colors(enabled=False)

    def dump(self, element: Any, indent: int = 0) -> None:
        c = self.colors
        prefix = "  " * indent
        header = f"{c.CYAN}{type(element).__name__}{c.RESET}"
        attrs = self._display_attrs(element)
        if attrs:
            header += " " + " ".join(f"{c.DIM}{k}={c.RESET}{c.YELLOW}{v!r}{c.RESET}" for k, v in attrs)
        self.stream.write(f"{prefix}{header}\n")
        for label, block in self._child_blocks(element):
            self.stream.write(f"{prefix}  {c.DIM}{label}:{c.RESET}\n")
            for child in block:
                self.dump(child, indent + 2)

    def _display_attrs(self, element: Any) -> List[Tuple[str, Any]]:
        from structogen import elements as E

        attrs: List[Tuple[str, Any]] = []
        text = element.text[:1] if isinstance(element, E.Case) else element.text
        if text:
            attrs.append(("text", text))
        if element.comment:
            attrs.append(("comment", element.comment))
        if element.render_as_comment:
            attrs.append(("as_comment", True))
        if isinstance(element, E.For):
            for name in ("counter_var", "start_value", "end_value", "step"):
                value = getattr(element, name)
                if value is not None:
                    attrs.append((name, value))
        if isinstance(element, E.Root):
            attrs.append(("name", element.method_name))
            attrs.append(("program", element.is_program))
            if element.parameters:
                attrs.append(("parameters", [tuple(p) for p in element.parameters]))
            if element.result_type:
                attrs.append(("result_type", element.result_type))
        return attrs

    def _child_blocks(self, element: Any) -> List[Tuple[str, Any]]:
        from structogen import elements as E

        if isinstance(element, E.Alternative):
            return [("then", element.q_true), ("else", element.q_false)]
        if isinstance(element, E.Case):
            return [(f"branch {label!r}", branch)
                    for label, branch in zip(element.labels, element.branches)]
        if isinstance(element, E.Parallel):
            return [(f"thread {i}", thread) for i, thread in enumerate(element.threads)]
        if isinstance(element, E.Root):
            return [("children", element.children)]
        return [("body", block) for block in element.blocks()]


# ═══════════════════════════════════════════════════════════════════════════
# COMMAND HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def _load_settings(args: argparse.Namespace, formatter: DiagnosticFormatter) -> Any:
    """Settings from ``--settings`` plus the option flags; None on error."""
    from structogen.config import Settings
    from structogen.errors import ConfigError

    data: dict = {}
    if getattr(args, "settings", None):
        try:
            data = Settings.load(args.settings).to_dict()
        except ConfigError as e:
            formatter.report(e, args.settings)
            return None
    options = data.setdefault("options", {})
    if getattr(args, "no_conversion", False):
        options["no_conversion"] = True
    if getattr(args, "instructions_as_comments", False):
        options["instructions_as_comments"] = True
    if getattr(args, "no_comments", False):
        options["include_comments"] = False
    if getattr(args, "indent", None) is not None:
        options["indent"] = args.indent
    try:
        return Settings.from_dict(data)
    except ConfigError as e:
        formatter.report(e, getattr(args, "settings", None))
        return None


def _load_root(path: str, formatter: DiagnosticFormatter) -> Any:
    """The diagram in *path* (``-`` for stdin); None on error."""
    from structogen.errors import StructogenError

    load_diagram, loads_diagram, _ = _import_loader()
    try:
        if path == "-":
            return loads_diagram(sys.stdin.read())
        return load_diagram(path)
    except StructogenError as e:
        formatter.report(e, "<stdin>" if path == "-" else path)
        return None


# ═══════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════

def cmd_generate(args: argparse.Namespace) -> int:
    """Handle the 'generate' command."""
    from structogen.errors import StructogenError

    colors = _get_colors()
    formatter = DiagnosticFormatter(colors)
    _, _, get_backend = _import_backends()
    CodeGenerator = _import_codegen()

    try:
        backend = get_backend(args.backend)
    except StructogenError as e:
        formatter.report(e)
        return 1
    settings = _load_settings(args, formatter)
    if settings is None:
        return 1
    root = _load_root(args.input, formatter)
    if root is None:
        return 1

    try:
        code = CodeGenerator(backend, settings).generate(root)
    except StructogenError as e:
        formatter.report(e, args.input)
        return 1

    location = "<stdin>" if args.input == "-" else args.input
    for diag in code.diagnostics:
        formatter.diagnostic(diag, location)

    if args.output:
        try:
            code.write_to_file(args.output)
        except OSError as e:
            formatter.error(f"cannot write output: {e}")
            return 1
        if not args.quiet:
            sys.stderr.write(
                f"{colors.GREEN}✓{colors.RESET} "
                f"{code.description}: {colors.BOLD}{args.output}{colors.RESET}\n"
            )
    else:
        sys.stdout.write(code.text + "\n")

    formatter.summary()
    if args.strict and code.diagnostics:
        return 1
    return 0


def cmd_backends(args: argparse.Namespace) -> int:
    """Handle the 'backends' command."""
    BACKENDS, available_backends, _ = _import_backends()
    for name in available_backends():
        backend = BACKENDS[name]
        extensions = ", ".join("." + ext for ext in backend.extensions)
        sys.stdout.write(f"{name:<8} {extensions:<24} {backend.description}\n")
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the 'tokens' command."""
    from structogen.lexer import classify_lexemes, split_lexically

    if args.classify:
        for lexeme, kind in classify_lexemes(args.text, args.variables or (), args.io or ()):
            sys.stdout.write(f"{kind.value:<9} {json.dumps(lexeme)}\n")
    else:
        sys.stdout.write(json.dumps(split_lexically(args.text, args.restore_literals)) + "\n")
    return 0


def cmd_intermediate(args: argparse.Namespace) -> int:
    """Handle the 'intermediate' command."""
    from structogen.intermediate import to_intermediate

    formatter = DiagnosticFormatter(_get_colors())
    settings = _load_settings(args, formatter)
    if settings is None:
        return 1
    for text in args.text:
        interm = to_intermediate(text, settings.markers)
        sys.stdout.write((json.dumps(interm) if args.quoted else interm) + "\n")
    return 0


def cmd_dump_ast(args: argparse.Namespace) -> int:
    """Handle the 'dump-ast' command."""
    formatter = DiagnosticFormatter(_get_colors())
    root = _load_root(args.input, formatter)
    if root is None:
        return 1
    TreeDumper(sys.stdout, _get_colors(sys.stdout) if args.color else None).dump(root)
    return 0


def cmd_dump_sexp(args: argparse.Namespace) -> int:
    """Handle the 'dump-sexp' command."""
    formatter = DiagnosticFormatter(_get_colors())
    root = _load_root(args.input, formatter)
    if root is None:
        return 1
    _, _, dumps_diagram = _import_loader()
    sys.stdout.write(dumps_diagram(root))
    return 0


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT PARSER
# ═══════════════════════════════════════════════════════════════════════════

def _add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-s", "--settings",
        metavar="FILE",
        help="JSON settings file with 'markers' and 'options' sections",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the structogen CLI."""
    parser = argparse.ArgumentParser(
        prog="structogen",
        description=__description__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s generate fact.nsx
              %(prog)s generate fact.nsx -b pascal -o fact.pas
              %(prog)s backends
              %(prog)s tokens 'x <- "a, b"' --restore-literals
              %(prog)s intermediate 'while (i <= n)'
              %(prog)s dump-ast fact.nsx
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or pipeline tracing (-vv) to stderr",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="available commands",
        metavar="<command>",
    )

    # ── generate ─────────────────────────────────────────────────────────

    p_generate = subparsers.add_parser(
        "generate",
        help="Export a diagram file as source code",
        description="Export the routine of a .nsx diagram file in the chosen target language.",
    )
    p_generate.add_argument("input", help="Input diagram file (use '-' for stdin)")
    p_generate.add_argument(
        "-b", "--backend",
        default="bash",
        help="Target language (default: bash; see 'structogen backends')",
    )
    p_generate.add_argument("-o", "--output", help="Output file (default: stdout)")
    _add_settings_arguments(p_generate)
    p_generate.add_argument(
        "--indent",
        metavar="STRING",
        help="Initial indentation prefixed to every generated line",
    )
    p_generate.add_argument(
        "--no-conversion",
        action="store_true",
        help="Copy element text verbatim instead of converting it",
    )
    p_generate.add_argument(
        "--instructions-as-comments",
        action="store_true",
        help="Export instructions, calls and jumps as comments",
    )
    p_generate.add_argument(
        "--no-comments",
        action="store_true",
        help="Do not export element comments",
    )
    p_generate.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any diagnostic was reported",
    )
    p_generate.add_argument("-q", "--quiet", action="store_true", help="Suppress status messages")
    p_generate.set_defaults(func=cmd_generate)

    # ── backends ─────────────────────────────────────────────────────────

    p_backends = subparsers.add_parser("backends", help="List the available target languages")
    p_backends.set_defaults(func=cmd_backends)

    # ── tokens ───────────────────────────────────────────────────────────

    p_tokens = subparsers.add_parser(
        "tokens",
        help="Show the lexemes of a text line",
        description="Split a text line into lexemes (printed as a JSON list).",
    )
    p_tokens.add_argument("text", help="Text line to split")
    p_tokens.add_argument(
        "--restore-literals",
        action="store_true",
        help="Keep quoted string and character literals as single lexemes",
    )
    p_tokens.add_argument(
        "--classify",
        action="store_true",
        help="Print the highlighting category of every lexeme",
    )
    p_tokens.add_argument("--variables", nargs="*", metavar="NAME", help="Known variable names")
    p_tokens.add_argument("--io", nargs="*", metavar="KEYWORD", help="Input/output keywords")
    p_tokens.set_defaults(func=cmd_tokens)

    # ── intermediate ─────────────────────────────────────────────────────

    p_interm = subparsers.add_parser(
        "intermediate",
        help="Show the intermediate form of text lines",
        description="Strip control keywords and unify operators, one line per argument.",
    )
    p_interm.add_argument("text", nargs="+", help="Text line(s) to convert")
    _add_settings_arguments(p_interm)
    p_interm.add_argument(
        "--quoted",
        action="store_true",
        help="Print each result as a JSON string so the padding is visible",
    )
    p_interm.set_defaults(func=cmd_intermediate)

    # ── dump-ast ─────────────────────────────────────────────────────────

    p_dump_ast = subparsers.add_parser("dump-ast", help="Dump the element tree of a diagram file")
    p_dump_ast.add_argument("input", help="Input diagram file (use '-' for stdin)")
    p_dump_ast.add_argument("--color", action="store_true", help="Colorize the output on a terminal")
    p_dump_ast.set_defaults(func=cmd_dump_ast)

    # ── dump-sexp ────────────────────────────────────────────────────────

    p_dump_sexp = subparsers.add_parser(
        "dump-sexp",
        help="Print a diagram file in canonical S-expression form",
    )
    p_dump_sexp.add_argument("input", help="Input diagram file (use '-' for stdin)")
    p_dump_sexp.set_defaults(func=cmd_dump_sexp)

    return parser


# ═══════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════

def _configure_logging(verbosity: int) -> None:
    level = {0: logging.ERROR, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("structogen").setLevel(level)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the structogen CLI.

    Parameters
    ----------
    argv : sequence of str, optional
        Command-line arguments. Defaults to sys.argv[1:].

    Returns
    -------
    int
        Exit code (0 = success, non-zero = failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)
    logger.debug("Running command %r", args.command)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130
    except BrokenPipeError:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return 0
    except Exception as e:
        colors = _get_colors()
        sys.stderr.write(f"\n{colors.RED}{colors.BOLD}Internal error:{colors.RESET} {e}\n")
        sys.stderr.write(f"{colors.DIM}This is a bug in structogen. Please report it.{colors.RESET}\n\n")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
