"""
Dedupe Command Handler.

This module implements the logic behind the `dedupimport` command line:
1. Configuration loading (``pyproject.toml`` + CLI overrides).
2. Input discovery: explicit files, directories walked recursively for
   ``*.py`` files, or standard input when no path is given.
3. Deduplication of every file via the Engine.
4. Output: rewritten code (default), the list of changed files (``-l``), a
   unified diff (``-d``) and/or an in-place overwrite (``-w``).

A failing file never aborts the batch. The exit code is the worst severity
seen: 0 for success, 1 if any file failed (I/O, syntax, unsafe rewrite), 2 for
usage errors and internal invariant violations.
"""

import logging
import os
import stat
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, TextIO

from rich.markup import escape
from rich.table import Table

from dedupimport.config import RuntimeConfig
from dedupimport.core.engine import DedupeEngine, DedupeResult
from dedupimport.core.errors import StructuralError
from dedupimport.utils.console import console, log_error, log_info, log_success, log_warning
from dedupimport.utils.diff import unified_diff

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

STDIN_NAME = "<standard input>"


@dataclass(frozen=True)
class OutputMode:
  """
  Which outputs to produce for every processed file.
  """

  list_files: bool = False
  show_diff: bool = False
  write: bool = False

  @property
  def print_code(self) -> bool:
    return not (self.list_files or self.show_diff or self.write)


def handle_dedupe(
  paths: List[Path],
  keep: Optional[str],
  import_only: Optional[bool],
  sort_imports: Optional[bool],
  mode: OutputMode,
  stdin: Optional[TextIO] = None,
  stdout: Optional[TextIO] = None,
) -> int:
  """
  Handles the `dedupimport` command execution.

  Args:
      paths: Files and directories to process. Empty means standard input.
      keep: Override for the keep policy.
      import_only: Override for import-only mode.
      sort_imports: Override for import sorting.
      mode: The requested outputs.
      stdin: Input stream used when `paths` is empty (defaults to sys.stdin).
      stdout: Destination of code, file lists and diffs (defaults to sys.stdout).

  Returns:
      int: Exit code.
  """
  out = stdout or sys.stdout

  if not paths and mode.write:
    log_error("cannot use -w with standard input")
    return EXIT_USAGE

  search_path = paths[0] if paths and paths[0].is_dir() else (paths[0].parent if paths else None)
  try:
    config = RuntimeConfig.load(keep=keep, import_only=import_only, sort_imports=sort_imports, search_path=search_path)
  except ValueError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return EXIT_USAGE

  engine = DedupeEngine(config)

  if not paths:
    code = (stdin or sys.stdin).read()
    try:
      result = _dedupe_source(engine, code, STDIN_NAME, mode, out)
    except StructuralError:
      logger.exception("Internal error while processing %s", STDIN_NAME)
      return EXIT_USAGE
    return EXIT_OK if result.success else EXIT_FAILURE

  exit_code = EXIT_OK
  batch_results: Dict[str, DedupeResult] = {}

  for path in paths:
    if path.is_dir():
      files = list(_iter_python_files(path))
      if not files:
        log_warning(f"No .py files found in [path]{escape(str(path))}[/path]")
    elif path.exists():
      files = [path]
    else:
      log_error(f"Input not found: [path]{escape(str(path))}[/path]")
      batch_results[str(path)] = DedupeResult(success=False, errors=["input not found"])
      exit_code = max(exit_code, EXIT_FAILURE)
      continue

    for file_path in files:
      try:
        result = _dedupe_file(engine, file_path, mode, out)
      except StructuralError as e:
        logger.exception("Internal error while processing %s", file_path)
        result = DedupeResult(success=False, errors=[f"internal error: {e}"])
        exit_code = EXIT_USAGE
      if not result.success:
        exit_code = max(exit_code, EXIT_FAILURE)
      batch_results[str(file_path)] = result

  if len(batch_results) > 1:
    _print_batch_summary(batch_results)
  return exit_code


def _iter_python_files(root: Path) -> Iterator[Path]:
  """
  Yields the ``*.py`` files below `root`, skipping hidden files and directories.
  """
  for path in sorted(root.rglob("*.py")):
    relative = path.relative_to(root)
    if any(part.startswith(".") for part in relative.parts):
      continue
    if path.is_file():
      yield path


def _dedupe_file(engine: DedupeEngine, path: Path, mode: OutputMode, out: TextIO) -> DedupeResult:
  """
  Helper to read, deduplicate and emit a single file.

  Args:
      engine: The configured engine.
      path: Source file path.
      mode: The requested outputs.
      out: Destination stream.

  Returns:
      DedupeResult: Result object containing status and code.
  """
  try:
    # newline="" keeps CRLF line endings intact
    with open(path, "rt", encoding="utf-8", newline="") as f:
      code = f.read()
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to read [path]{escape(str(path))}[/path]: {escape(str(e))}")
    return DedupeResult(success=False, errors=[str(e)])

  try:
    return _dedupe_source(engine, code, str(path), mode, out, path)
  except OSError as e:
    log_error(f"Failed to write [path]{escape(str(path))}[/path]: {escape(str(e))}")
    return DedupeResult(success=False, errors=[str(e)])


def _dedupe_source(
  engine: DedupeEngine,
  code: str,
  filename: str,
  mode: OutputMode,
  out: TextIO,
  path: Optional[Path] = None,
) -> DedupeResult:
  result = engine.run(code, filename)

  if not result.success:
    for error in result.errors:
      console.print(escape(error), style="error", highlight=False, soft_wrap=True)
    return result

  if result.removed:
    logger.debug("%s: removed %s", filename, ", ".join(result.removed))

  if mode.list_files and result.changed:
    out.write(f"{filename}\n")
  if mode.write and result.changed and path is not None:
    _overwrite(path, code, result.code)
    log_info(f"Rewrote [path]{escape(filename)}[/path]")
  if mode.show_diff and result.changed:
    out.write(f"diff -u {filename}.orig {filename}\n")
    out.write(unified_diff(code, result.code, filename))
  if mode.print_code:
    out.write(result.code)
  return result


def _overwrite(path: Path, original: str, updated: str) -> None:
  """
  Replaces the content of `path`, keeping a backup until the write succeeded.

  Raises:
      OSError: If the backup or the write fails. The original content is
          restored if the write itself failed.
  """
  perm = stat.S_IMODE(path.stat().st_mode)
  fd, backup = tempfile.mkstemp(prefix=f"{path.name}.", dir=path.parent)
  with os.fdopen(fd, "wt", encoding="utf-8", newline="") as f:
    f.write(original)
  os.chmod(backup, perm)

  try:
    with open(path, "wt", encoding="utf-8", newline="") as f:
      f.write(updated)
  except OSError:
    os.replace(backup, path)
    raise
  os.remove(backup)


def _print_batch_summary(results: Dict[str, DedupeResult]) -> None:
  """
  Renders a summary table of failed files to the console.

  Args:
      results: Dictionary mapping filenames to results.
  """
  total = len(results)
  changed = sum(1 for r in results.values() if r.success and r.changed)
  failures = sum(1 for r in results.values() if not r.success)

  if failures == 0:
    log_success(f"Batch Complete: {total} files checked, {changed} deduplicated.")
    return

  table = Table(title="Deduplication Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success:
      continue
    issues = "\n".join(res.errors) if res.errors else "Unknown Error"
    table.add_row(escape(filename), "❌ Failed", escape(issues))

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {total - failures} Passed ({changed} deduplicated), {failures} Failed.")
