# tests/conftest.py
"""
Shared fixtures and diagram sources for the structogen test suite.
"""

import pytest

from structogen.backends import BashBackend, OberonBackend, PascalBackend
from structogen.codegen import CodeGenerator
from structogen.config import GeneratorOptions, MarkerConfig, Settings


# ═══════════════════════════════════════════════════════════════════════════
# DIAGRAM SOURCES
# ═══════════════════════════════════════════════════════════════════════════

MINIMAL_NSX = """\
(root "demo"
  (instruction "x <- 1"))
"""

FACT_NSX = """\
; factorial as a function
(root "fact(n: int): int" :program nil
  (comment "Computes n!")
  (instruction "result <- 1")
  (for "for i <- 1 to n"
    (instruction "result <- result * i"))
  (jump "return result"))
"""

FULL_NSX = """\
(root "Showcase" :program t
  (comment "Every element kind once")
  (instruction "read x")
  (alternative "x > 0"
    (then (instruction "y <- 1"))
    (else (instruction "y <- 0")))
  (case "y"
    (branch "0, 1" (call "report(y)"))
    (branch "%"))
  (for "for i <- 10 to 1 by -2"
    (instruction "write i"))
  (for "loop" :counter "k" :start "0" :end "x - 1" :step 3
    (instruction "inc(y)"))
  (while "while y < 10"
    (instruction "y <- y + 1"))
  (repeat "until y >= 20"
    (instruction "dec(y, 2)"))
  (forever
    (jump "leave"))
  (parallel
    (thread (instruction "a <- 1"))
    (thread (instruction "b <- 2")))
  (jump "exit 0"))
"""

BAD_SEXP_NSX = """\
(root "demo"
  (instruction "x <- 1")
"""

UNKNOWN_KIND_NSX = """\
(root "demo"
  (loop "forever and ever"))
"""


# ═══════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def markers():
    return MarkerConfig()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def bash_gen():
    return CodeGenerator(BashBackend())


@pytest.fixture
def oberon_gen():
    return CodeGenerator(OberonBackend())


@pytest.fixture
def pascal_gen():
    return CodeGenerator(PascalBackend())


def make_gen(backend, **options):
    """A generator for *backend* with the given ``GeneratorOptions``."""
    return CodeGenerator(backend, Settings(options=GeneratorOptions(**options)))


@pytest.fixture
def diagram_file(tmp_path):
    """Write a diagram source to a temporary ``.nsx`` file."""
    def _write(source, name="diagram.nsx"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path
    return _write
