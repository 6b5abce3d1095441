"""
Duplicate Import Resolution.

Groups the import specifications of a file by normalized module path and, for
every group holding more than one specification, picks the one that survives
according to a `KeepPolicy`. Every other member of the group is marked for
removal and points at the survivor that subsumes it.

Dot imports (``from m import *``) and blank imports (``import m as _``) never
take part: the former injects names directly into the module scope and the
latter exists only for its side effects, so both legitimately coexist with a
regular import of the same module.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from dedupimport.core.specs import ImportSpecification
from dedupimport.enums import KeepPolicy

logger = logging.getLogger(__name__)


@dataclass
class MarkedSpec:
  """
  An import specification annotated with its removal status.
  """

  spec: ImportSpecification
  remove: bool = False
  subsumed_by: Optional[ImportSpecification] = None
  """The surviving specification replacing this one; None unless `remove` is set."""


def _keep_first(group: Sequence[ImportSpecification]) -> int:
  return 0


def _keep_unnamed(group: Sequence[ImportSpecification]) -> int:
  for idx, spec in enumerate(group):
    if spec.alias is None:
      return idx
  return 0


def _keep_named(group: Sequence[ImportSpecification]) -> int:
  # shortest alias wins; strict comparison keeps the earliest of equal lengths
  keep = -1
  length = -1
  for idx, spec in enumerate(group):
    if spec.alias is not None and (length == -1 or len(spec.alias) < length):
      keep = idx
      length = len(spec.alias)
  return keep if keep != -1 else 0


def _keep_comment(group: Sequence[ImportSpecification]) -> int:
  for idx, spec in enumerate(group):
    if spec.has_comment:
      return idx
  return 0


_POLICIES: Dict[KeepPolicy, Callable[[Sequence[ImportSpecification]], int]] = {
  KeepPolicy.FIRST: _keep_first,
  KeepPolicy.UNNAMED: _keep_unnamed,
  KeepPolicy.NAMED: _keep_named,
  KeepPolicy.COMMENT: _keep_comment,
}


def choose_survivor(group: Sequence[ImportSpecification], policy: KeepPolicy) -> int:
  """
  Selects the index of the specification to keep within one duplicate group.

  Args:
      group: Specifications sharing a path, in declaration order.
      policy: The tie-break policy.

  Returns:
      int: Index into `group` of the survivor.
  """
  return _POLICIES[KeepPolicy(policy)](group)


def mark_duplicates(specs: Sequence[ImportSpecification], policy: KeepPolicy) -> List[MarkedSpec]:
  """
  Marks all but one specification of every duplicate group for removal.

  Neither the input sequence nor its elements are modified.

  Args:
      specs: Every import specification of the file, in declaration order.
      policy: The tie-break policy applied to each group.

  Returns:
      List[MarkedSpec]: One entry per input specification, in the same order.
  """
  marked = [MarkedSpec(spec) for spec in specs]

  groups: Dict[str, List[MarkedSpec]] = {}
  for entry in marked:
    if entry.spec.is_dot or entry.spec.is_blank:
      continue
    groups.setdefault(entry.spec.path, []).append(entry)

  for path, group in groups.items():
    if len(group) < 2:
      continue
    keep = choose_survivor([entry.spec for entry in group], policy)
    survivor = group[keep].spec
    logger.debug("Duplicate group '%s' (%d imports): keeping '%s'", path, len(group), survivor.label)
    for idx, entry in enumerate(group):
      if idx != keep:
        entry.remove = True
        entry.subsumed_by = survivor

  return marked
