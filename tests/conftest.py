"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Helpers to run the engine on inline source snippets.
- Console isolation so CLI tests can capture diagnostics.
"""

import io
import sys
import textwrap
from pathlib import Path

import pytest
from rich.console import Console

# Add src to path so we can import 'dedupimport' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from dedupimport.config import RuntimeConfig  # noqa: E402
from dedupimport.core.engine import DedupeEngine  # noqa: E402
from dedupimport.utils.console import _THEME, reset_console, set_console  # noqa: E402


def dedent(code: str) -> str:
  """Strips the common indentation of a triple-quoted snippet and its leading newline."""
  return textwrap.dedent(code).lstrip("\n")


@pytest.fixture
def run_dedupe():
  """
  Returns a callable running the engine on a snippet.

  Usage: ``run_dedupe(code, keep="named", import_only=True)``.
  """

  def _run(code: str, filename: str = "test.py", **settings):
    engine = DedupeEngine(RuntimeConfig(**settings))
    return engine.run(dedent(code), filename)

  return _run


@pytest.fixture
def captured_console():
  """
  Redirects the global console (and logging) into a buffer for the test's duration.
  """
  buffer = io.StringIO()
  set_console(Console(file=buffer, force_terminal=False, width=200, theme=_THEME))
  yield buffer
  reset_console()
