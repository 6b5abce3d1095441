"""
Import Ordering.

Canonicalizes the order of module-level ``import`` statements once duplicates
are gone. Only runs of adjacent statement lines that each hold a single
``import`` statement are reordered; a blank line or a comment line ends a run,
so hand-made groupings survive. The leading lines of a run stay at its top.
"""

from typing import List, Optional, Sequence, Tuple

import libcst as cst

from dedupimport.core.specs import alias_name, get_full_name

SortKey = Tuple[Tuple[str, str], ...]


def _sort_key(stmt: cst.BaseStatement) -> Optional[SortKey]:
  """Returns the sort key of a single-import line, or None for any other statement."""
  if not isinstance(stmt, cst.SimpleStatementLine) or len(stmt.body) != 1:
    return None
  small = stmt.body[0]
  if not isinstance(small, cst.Import):
    return None
  return tuple((get_full_name(alias.name), alias_name(alias) or "") for alias in small.names)


def _sort_run(run: Sequence[cst.SimpleStatementLine]) -> List[cst.SimpleStatementLine]:
  ordered = sorted(run, key=_sort_key)
  if all(a is b for a, b in zip(ordered, run)):
    return list(run)
  header = run[0].leading_lines
  result = []
  for idx, stmt in enumerate(ordered):
    result.append(stmt.with_changes(leading_lines=header if idx == 0 else ()))
  return result


def sort_imports(module: cst.Module) -> cst.Module:
  """
  Sorts every run of adjacent single-import lines by (path, alias).

  Args:
      module: The module to reorder.

  Returns:
      cst.Module: The reordered module (the same object if nothing moved).
  """
  new_body: List[cst.BaseStatement] = []
  run: List[cst.SimpleStatementLine] = []
  moved = False

  def flush() -> None:
    nonlocal moved
    if run:
      sorted_run = _sort_run(run)
      moved = moved or any(a is not b for a, b in zip(sorted_run, run))
      new_body.extend(sorted_run)
      run.clear()

  for stmt in module.body:
    if _sort_key(stmt) is None:
      flush()
      new_body.append(stmt)
      continue
    if run and stmt.leading_lines:
      flush()
    run.append(stmt)
  flush()

  if not moved:
    return module
  return module.with_changes(body=new_body)
