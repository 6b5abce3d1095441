"""
Import Declaration Trimming.

Rewrites the module-level ``import`` statements of a file so they only contain
the surviving import aliases. Statements left without aliases are dropped, and
so are statement lines left without statements. Surviving aliases keep their
relative order and the comments attached to their line. Blank lines and
comments above a dropped line move to the next statement, so import groups
and their section comments survive; the trailing comment of the dropped line
goes with it.
"""

from typing import AbstractSet, List, Sequence

import libcst as cst

from dedupimport.core.errors import StructuralError


def _without_trailing_comma(names: Sequence[cst.ImportAlias]) -> List[cst.ImportAlias]:
  # `import a, b` -> dropping `b` leaves `a,` which is not valid syntax
  fixed = list(names)
  fixed[-1] = fixed[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
  return fixed


def _without_trailing_semicolon(body: Sequence[cst.BaseSmallStatement]) -> List[cst.BaseSmallStatement]:
  fixed = list(body)
  fixed[-1] = fixed[-1].with_changes(semicolon=cst.MaybeSentinel.DEFAULT)
  return fixed


def _with_carried_lines(stmt: cst.BaseStatement, carried: Sequence[cst.EmptyLine]) -> cst.BaseStatement:
  if not carried:
    return stmt
  return stmt.with_changes(leading_lines=[*carried, *stmt.leading_lines])


def trim_import_decls(
  module: cst.Module,
  surviving: AbstractSet[cst.CSTNode],
  removed: AbstractSet[cst.CSTNode],
) -> cst.Module:
  """
  Drops removed import aliases from the module-level import statements.

  Args:
      module: The module whose import statements are rewritten.
      surviving: ``ImportAlias`` nodes to keep.
      removed: ``ImportAlias`` nodes to drop.

  Returns:
      cst.Module: The trimmed module.

  Raises:
      StructuralError: If a module-level alias is neither surviving nor removed.
  """
  new_body: List[cst.BaseStatement] = []
  carried: List[cst.EmptyLine] = []

  for stmt in module.body:
    if not isinstance(stmt, cst.SimpleStatementLine):
      new_body.append(_with_carried_lines(stmt, carried))
      carried = []
      continue

    kept_small: List[cst.BaseSmallStatement] = []
    for small in stmt.body:
      if not isinstance(small, cst.Import):
        kept_small.append(small)
        continue

      names = []
      for alias in small.names:
        if alias in surviving:
          names.append(alias)
        elif alias not in removed:
          raise StructuralError(f"unexpected import alias '{cst.Module([]).code_for_node(alias)}' during trimming")
      if not names:
        continue
      if len(names) != len(small.names):
        small = small.with_changes(names=_without_trailing_comma(names))
      kept_small.append(small)

    if not kept_small:
      carried.extend(stmt.leading_lines)
      continue
    changed = len(kept_small) != len(stmt.body) or any(a is not b for a, b in zip(kept_small, stmt.body))
    if len(kept_small) != len(stmt.body):
      kept_small = _without_trailing_semicolon(kept_small)
    if changed:
      stmt = stmt.with_changes(body=kept_small)
    new_body.append(_with_carried_lines(stmt, carried))
    carried = []

  # at the end of the file only comments are worth keeping
  while carried and carried[-1].comment is None:
    carried.pop()
  if carried:
    return module.with_changes(body=new_body, footer=[*carried, *module.footer])
  return module.with_changes(body=new_body)
