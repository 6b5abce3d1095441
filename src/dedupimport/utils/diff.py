"""
Unified diff rendering for the ``--diff`` output mode.
"""

import difflib


def unified_diff(original: str, updated: str, filename: str) -> str:
  """
  Renders the changes between two versions of a file.

  Args:
      original: Content before deduplication.
      updated: Content after deduplication.
      filename: Name shown in the diff header.

  Returns:
      str: The diff text, with ``--- <filename>.orig`` / ``+++ <filename>``
      headers; empty if both versions are equal.
  """
  lines = difflib.unified_diff(
    original.splitlines(keepends=True),
    updated.splitlines(keepends=True),
    fromfile=f"{filename}.orig",
    tofile=filename,
  )
  chunks = []
  for line in lines:
    chunks.append(line if line.endswith("\n") else line + "\n\\ No newline at end of file\n")
  return "".join(chunks)
