"""
Main Entry Point for the dedupimport CLI.

This module handles argument parsing and dispatches to the command handler
defined in `dedupimport.cli.handlers`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from dedupimport import __version__
from dedupimport.cli import handlers
from dedupimport.enums import KeepPolicy
from dedupimport.utils.console import set_verbose

_DESCRIPTION = """\
dedupimport: remove duplicate imports of the same module.

Duplicate imports are collapsed into one and qualified references through a
removed alias are renamed to the surviving one. With no paths, reads standard
input and writes standard output. Directories are processed recursively.
"""


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, 1 if a file failed, 2 for usage or internal errors).
  """
  parser = argparse.ArgumentParser(
    prog="dedupimport",
    description=_DESCRIPTION,
    formatter_class=argparse.RawDescriptionHelpFormatter,
  )
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("paths", nargs="*", type=Path, help="Input files or directories (default: stdin)")
  parser.add_argument(
    "-s",
    "--keep",
    default=None,
    choices=[policy.value for policy in KeepPolicy],
    metavar="KIND",
    help="Kind of import to keep: first, comment, named, or unnamed (default: from toml, else unnamed)",
  )
  parser.add_argument(
    "-i",
    "--import-only",
    action="store_true",
    default=None,
    help="Only modify imports; don't adjust the rest of the file",
  )
  parser.add_argument(
    "--sort",
    dest="sort_imports",
    action="store_true",
    default=None,
    help="Sort adjacent import lines after deduplicating",
  )
  parser.add_argument("-l", "--list", dest="list_files", action="store_true", help="List files with duplicate imports")
  parser.add_argument("-d", "--diff", action="store_true", help="Display diff instead of rewriting files")
  parser.add_argument(
    "-w", "--write", action="store_true", help="Write result to source file instead of stdout"
  )
  parser.add_argument("-v", "--verbose", action="store_true", help="Log debug traces (groups, rewrite rules)")

  args = parser.parse_args(argv)

  if args.verbose:
    set_verbose(True)

  mode = handlers.OutputMode(list_files=args.list_files, show_diff=args.diff, write=args.write)
  return handlers.handle_dedupe(
    args.paths,
    keep=args.keep,
    import_only=args.import_only,
    sort_imports=args.sort_imports,
    mode=mode,
  )


if __name__ == "__main__":
  sys.exit(main())
