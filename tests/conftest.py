"""
pytest configuration and shared fixtures for tmplforge tests.

The real ``handlebars`` CLI is never required: tests run
``fake_handlebars.py`` with the current interpreter instead, so every
compile job still runs in a real subprocess.

Fixtures
--------
fake_compiler : list[str]
    Command line prefix for the fake compiler.

make_templates : Callable
    Factory that writes a template tree and returns its root.

options : CompileOptions
    Options wired to the fake compiler with two concurrent workers.
"""

import shlex
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from tmplforge.models import CompileOptions


FAKE_HANDLEBARS = Path(__file__).parent / "fake_handlebars.py"


@pytest.fixture
def fake_compiler() -> list[str]:
    """Command that runs the fake compiler."""
    return [sys.executable, str(FAKE_HANDLEBARS)]


@pytest.fixture
def fake_compiler_command(fake_compiler: list[str]) -> str:
    """The fake compiler as a single shell-quoted string (for the CLI)."""
    return shlex.join(fake_compiler)


@pytest.fixture
def make_templates(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """
    Create a template tree under a fresh directory.

    Returns
    -------
    Callable
        ``make_templates({"a/b/c.hbs": "body"})`` writes the files and
        returns the root directory.
    """
    def _make(files: dict[str, str], root_name: str = "templates") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for relative, body in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(body, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def options(fake_compiler: list[str]) -> CompileOptions:
    """Compile options using the fake compiler and two workers."""
    return CompileOptions(compiler=fake_compiler, concurrency=2)


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
