"""
Qualified Reference Rewriting.

Once duplicate imports are removed, every qualified reference that reached a
module through a removed label (``x.Foo`` for ``import m as x``) must be
renamed to the surviving label (``m.Foo``). A rename is only safe if the
surviving label is not captured, at that point of the program, by some other
identifier: a parameter, a local variable, a class, another import ...

The rewriter walks the module depth-first while an explicit `RewriteContext`
tracks the innermost enclosing scope, checks every candidate against the scope
tree, and collects *all* violations before failing.

The rewriter runs on the original module, before the removed imports are
trimmed, so diagnostics point at the lines the user wrote. The scope tree is
built as if the removed imports were already gone. Two more ways a removal can
break a file are reported as well:

- ``import a.b`` also binds ``a``. Once it is gone, uses of ``a`` that no rule
  renames are left without a binding.
- A survivor placed after a removed import binds its name later. Code running
  at import time between the two would use the name before it exists.
"""

import logging
from dataclasses import dataclass
from typing import AbstractSet, Dict, List, Mapping, Optional, Sequence, Set, Union

import libcst as cst
from libcst.metadata import MetadataWrapper, ParentNodeProvider, PositionProvider

from dedupimport.core.errors import RewriteError, RewriteViolation, StructuralError
from dedupimport.core.resolver import MarkedSpec
from dedupimport.core.scope import ScopeNode, build_scopes, index_scopes
from dedupimport.core.specs import alias_name, create_dotted_name, get_full_name, head_name
from dedupimport.enums import ScopeKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewriteRule:
  """
  Rename instruction for one removed import.
  """

  from_name: str
  """Label of the removed import (alias, or dotted path if unaliased)."""

  to_name: str
  """Label of the surviving import of the same module."""

  path: str
  """The module both labels refer to."""


def build_rewrite_rules(marked: Sequence[MarkedSpec]) -> Dict[str, RewriteRule]:
  """
  Builds one rule per removed import whose label differs from its survivor's.

  Args:
      marked: Output of the duplicate resolver.

  Returns:
      Dict[str, RewriteRule]: Rules keyed by `from_name`.
  """
  rules: Dict[str, RewriteRule] = {}
  for entry in marked:
    if not entry.remove:
      continue
    source = entry.spec.label
    target = entry.subsumed_by.label
    if source == target:
      continue
    rules[source] = RewriteRule(from_name=source, to_name=target, path=entry.spec.path)
  return rules


def build_late_survivors(marked: Sequence[MarkedSpec]) -> Dict[str, RewriteRule]:
  """
  Finds the names that a removed import bound earlier than its survivor does.

  Only pairs binding the same name are returned: references to that name are
  not renamed, yet between the two imports they lose their binding. Renamed
  references are checked on their own.

  Args:
      marked: Output of the duplicate resolver.

  Returns:
      Dict[str, RewriteRule]: Rules keyed by the shared bound name.
  """
  late: Dict[str, RewriteRule] = {}
  for entry in marked:
    if not entry.remove or entry.subsumed_by.index < entry.spec.index:
      continue
    name = head_name(entry.spec.label)
    if name != head_name(entry.subsumed_by.label):
      continue
    late.setdefault(name, RewriteRule(entry.spec.label, entry.subsumed_by.label, entry.spec.path))
  return late


class RewriteContext:
  """
  Traversal state of the rewriter: the stack of scopes enclosing the current node.
  """

  def __init__(self, scope_by_node: Mapping[cst.CSTNode, ScopeNode]):
    self._scope_by_node = scope_by_node
    self._stack: List[ScopeNode] = []

  @property
  def current(self) -> ScopeNode:
    """The innermost enclosing scope."""
    if not self._stack:
      raise StructuralError("reference visited outside of any scope")
    return self._stack[-1]

  @property
  def deferred(self) -> bool:
    """Whether the current node only runs once a function or lambda is called."""
    return any(scope.kind in (ScopeKind.FUNCTION, ScopeKind.LAMBDA) for scope in self._stack)

  def enter(self, node: cst.CSTNode) -> None:
    """Enters the scope defined by `node`."""
    scope = self._scope_by_node.get(node)
    if scope is None:
      raise StructuralError(f"no scope recorded for {type(node).__name__} node")
    self._stack.append(scope)

  def enter_scope(self, scope: ScopeNode) -> None:
    self._stack.append(scope)

  def exit(self) -> None:
    self._stack.pop()


def _refers_to_removed(binding: Optional[cst.CSTNode], rule: RewriteRule) -> bool:
  """
  Whether a reference spelled with `rule.from_name` still denotes the removed import.
  """
  if binding is None:
    return True
  if rule.from_name != rule.path:
    # the alias is bound to something else at this point
    return False
  # `a.b` stays reachable while another plain `import a...` binds `a`
  return (
    isinstance(binding, cst.ImportAlias)
    and alias_name(binding) is None
    and head_name(get_full_name(binding.name)) == head_name(rule.path)
  )


def _is_surviving_binding(binding: cst.CSTNode, rule: RewriteRule) -> bool:
  """
  Whether `binding` makes `rule.to_name` denote the intended module.
  """
  if not isinstance(binding, cst.ImportAlias):
    return False
  path = get_full_name(binding.name)
  alias = alias_name(binding)
  if alias is None:
    return rule.to_name == rule.path and head_name(path) == head_name(rule.path)
  return alias == rule.to_name and path == rule.path


def _orphaned_heads(root: ScopeNode, rules: Mapping[str, RewriteRule]) -> Dict[str, RewriteRule]:
  """
  Maps the package names only bound by removed ``import a.b`` statements to their rule.
  """
  orphaned: Dict[str, RewriteRule] = {}
  for rule in rules.values():
    if rule.from_name != rule.path or "." not in rule.path:
      continue
    head = head_name(rule.path)
    if root.lookup(head) is None:
      orphaned.setdefault(head, rule)
  return orphaned


_NAME_SLOTS = (
  (cst.Attribute, "attr"),
  (cst.Arg, "keyword"),
  (cst.Param, "name"),
  (cst.NameItem, "name"),
  (cst.MatchKeywordElement, "key"),
  (cst.FunctionDef, "name"),
  (cst.ClassDef, "name"),
)


class ReferenceRewriter(cst.CSTTransformer):
  """
  Renames qualified references of removed imports, refusing unsafe renames.

  Run it through a `MetadataWrapper` around the module the scope tree was built from.
  """

  METADATA_DEPENDENCIES = (PositionProvider, ParentNodeProvider)

  def __init__(
    self,
    root: ScopeNode,
    rules: Mapping[str, RewriteRule],
    filename: str = "<unknown>",
    late: Optional[Mapping[str, RewriteRule]] = None,
  ):
    """
    Args:
        root: Sealed scope tree of the module being rewritten.
        rules: Rewrite rules keyed by removed label.
        filename: Name used in diagnostics.
        late: Output of `build_late_survivors`.
    """
    super().__init__()
    self.rules = rules
    self.filename = filename
    self.late = late or {}
    self._orphaned = _orphaned_heads(root, rules)
    self.context = RewriteContext(index_scopes(root))
    self.violations: List[RewriteViolation] = []
    self._renames: Dict[cst.Attribute, str] = {}
    self._outermost_fors: Set[cst.CompFor] = set()

  # --- Scope tracking ---

  def visit_Module(self, node: cst.Module) -> None:
    self.context.enter(node)

  def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
    self.context.exit()
    return updated_node

  # decorators, defaults and annotations are evaluated outside the body
  def visit_FunctionDef_body(self, node: cst.FunctionDef) -> None:
    self.context.enter(node)

  def leave_FunctionDef_body(self, node: cst.FunctionDef) -> None:
    self.context.exit()

  def visit_Lambda_body(self, node: cst.Lambda) -> None:
    self.context.enter(node)

  def leave_Lambda_body(self, node: cst.Lambda) -> None:
    self.context.exit()

  def visit_ClassDef_body(self, node: cst.ClassDef) -> None:
    self.context.enter(node)

  def leave_ClassDef_body(self, node: cst.ClassDef) -> None:
    self.context.exit()

  def _enter_comprehension(self, node: Union[cst.ListComp, cst.SetComp, cst.DictComp, cst.GeneratorExp]) -> None:
    self.context.enter(node)
    self._outermost_fors.add(node.for_in)

  def visit_ListComp(self, node: cst.ListComp) -> None:
    self._enter_comprehension(node)

  def leave_ListComp(self, original_node: cst.ListComp, updated_node: cst.ListComp) -> cst.BaseExpression:
    self.context.exit()
    return updated_node

  def visit_SetComp(self, node: cst.SetComp) -> None:
    self._enter_comprehension(node)

  def leave_SetComp(self, original_node: cst.SetComp, updated_node: cst.SetComp) -> cst.BaseExpression:
    self.context.exit()
    return updated_node

  def visit_DictComp(self, node: cst.DictComp) -> None:
    self._enter_comprehension(node)

  def leave_DictComp(self, original_node: cst.DictComp, updated_node: cst.DictComp) -> cst.BaseExpression:
    self.context.exit()
    return updated_node

  def visit_GeneratorExp(self, node: cst.GeneratorExp) -> None:
    self._enter_comprehension(node)

  def leave_GeneratorExp(self, original_node: cst.GeneratorExp, updated_node: cst.GeneratorExp) -> cst.BaseExpression:
    self.context.exit()
    return updated_node

  # the outermost iterable of a comprehension belongs to the enclosing scope
  def visit_CompFor_iter(self, node: cst.CompFor) -> None:
    if node in self._outermost_fors:
      self.context.enter_scope(self.context.current.parent)

  def leave_CompFor_iter(self, node: cst.CompFor) -> None:
    if node in self._outermost_fors:
      self.context.exit()

  # --- Imports are declarations, never references ---

  def visit_Import(self, node: cst.Import) -> bool:
    return False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
    return False

  # --- References ---

  def visit_Attribute(self, node: cst.Attribute) -> bool:
    value_name = get_full_name(node.value)
    rule = self.rules.get(value_name) if value_name else None
    if rule is not None:
      self._rewrite_qualified(node, rule)
      return False

    own_name = get_full_name(node)
    rule = self.rules.get(own_name) if own_name else None
    if rule is not None:
      self._check_bare(node, rule)
      return False
    return True

  def visit_Name(self, node: cst.Name) -> None:
    name = node.value
    if name not in self.rules and name not in self._orphaned and name not in self.late:
      return
    if not self._is_reference(node):
      return

    rule = self.rules.get(name)
    if rule is not None:
      self._check_bare(node, rule)
    elif name in self._orphaned:
      self._check_orphaned(node, self._orphaned[name])
    else:
      self._check_bound_before(node, name, self.late[name])

  def leave_Attribute(self, original_node: cst.Attribute, updated_node: cst.Attribute) -> cst.BaseExpression:
    target = self._renames.get(original_node)
    if target is None:
      return updated_node
    old_value = original_node.value
    new_value = create_dotted_name(target).with_changes(lpar=old_value.lpar, rpar=old_value.rpar)
    return updated_node.with_changes(value=new_value)

  # --- Checks ---

  def _is_reference(self, node: cst.Name) -> bool:
    parent = self.get_metadata(ParentNodeProvider, node, None)
    for node_type, slot in _NAME_SLOTS:
      if isinstance(parent, node_type) and getattr(parent, slot) is node:
        return False
    return True

  def _rewrite_qualified(self, node: cst.Attribute, rule: RewriteRule) -> None:
    scope = self.context.current
    if not _refers_to_removed(scope.resolve(head_name(rule.from_name)), rule):
      return

    target = head_name(rule.to_name)
    binding = scope.resolve(target)
    if binding is not None and not _is_surviving_binding(binding, rule):
      self._report(
        node.value,
        rule,
        f"cannot rewrite `{rule.from_name}` to `{rule.to_name}`: identifier `{target}` "
        "is already in scope and would not refer to the intended module",
      )
      return
    self._renames[node] = rule.to_name
    self._check_bound_before(node.value, target, rule)

  def _check_orphaned(self, node: cst.Name, rule: RewriteRule) -> None:
    # a local of the same name is not affected by the removal
    if self.context.current.resolve(node.value) is not None:
      return
    self._report(
      node,
      rule,
      f"cannot remove `import {rule.path}`: `{node.value}` is still used here and would no longer be bound",
    )

  def _check_bound_before(self, node: cst.BaseExpression, name: str, rule: RewriteRule) -> None:
    """
    Reports a use of `name` that runs at import time before its surviving import.
    """
    if self.context.deferred:
      return
    binding = self.context.current.resolve(name)
    if not isinstance(binding, cst.ImportAlias):
      return
    bound_at = self.get_metadata(PositionProvider, binding).start
    used_at = self.get_metadata(PositionProvider, node).start
    if (bound_at.line, bound_at.column) < (used_at.line, used_at.column):
      return
    if rule.from_name != rule.to_name:
      prefix = f"cannot rewrite `{rule.from_name}` to `{rule.to_name}`"
    else:
      prefix = f"cannot remove the earlier import of `{rule.from_name}`"
    self._report(node, rule, f"{prefix}: `{name}` is not bound until line {bound_at.line}")

  def _check_bare(self, node: cst.BaseExpression, rule: RewriteRule) -> None:
    # a label still bound here is either another import of the package or an unrelated local
    if self.context.current.resolve(head_name(rule.from_name)) is not None:
      return
    self._report(
      node,
      rule,
      f"cannot rewrite `{rule.from_name}` to `{rule.to_name}`: `{rule.from_name}` "
      "is used directly, not through a qualified member access",
    )

  def _report(self, node: cst.CSTNode, rule: RewriteRule, message: str) -> None:
    start = self.get_metadata(PositionProvider, node).start
    violation = RewriteViolation(
      filename=self.filename,
      line=start.line,
      column=start.column + 1,
      from_name=rule.from_name,
      to_name=rule.to_name,
      message=message,
    )
    logger.debug("Unsafe rewrite: %s", violation)
    self.violations.append(violation)


def rewrite_references(
  module: cst.Module,
  rules: Mapping[str, RewriteRule],
  filename: str = "<unknown>",
  removed: AbstractSet[cst.CSTNode] = frozenset(),
  late: Optional[Mapping[str, RewriteRule]] = None,
) -> cst.Module:
  """
  Builds the scope tree of `module` and renames every safe qualified reference.

  Import statements are left as they are. Nodes in `removed` are still
  present in `module`, but the scope tree ignores them, and they come back
  unchanged (same objects) in the result so they can be trimmed afterwards.

  Args:
      module: The module, before trimming.
      rules: Rewrite rules keyed by removed label.
      filename: Name used in diagnostics.
      removed: ``ImportAlias`` nodes of `module` that are about to be dropped.
      late: Output of `build_late_survivors`.

  Returns:
      cst.Module: The rewritten module.

  Raises:
      RewriteError: If any reference could not be renamed safely. The error
          lists every violation of the file.
  """
  if not rules and not late:
    return module

  # no copy: `removed` holds nodes of this very tree
  wrapper = MetadataWrapper(module, unsafe_skip_copy=True)
  root = build_scopes(wrapper.module, excluded=removed)
  rewriter = ReferenceRewriter(root, rules, filename, late)
  rewritten = wrapper.visit(rewriter)

  if rewriter.violations:
    raise RewriteError(rewriter.violations)
  return rewritten
