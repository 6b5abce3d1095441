"""
Lexical Scope Model.

Builds an immutable tree of ``ScopeNode`` objects describing which identifiers
each lexical scope of a Python module declares. The reference rewriter uses it
to prove that renaming ``x.attr`` to ``y.attr`` cannot be captured by a local
``y`` (a parameter, a variable, a class, another import, ...).

Python scoping rules modelled here:

1.  The module scope holds every name bound by a top-level statement.
2.  ``def`` and ``lambda`` open a scope holding their parameters and every name
    bound in their body. Decorators, defaults and annotations are evaluated in
    the enclosing scope.
3.  ``class`` opens a scope holding the names bound in its body. Those names
    are *not* visible from functions nested in the class.
4.  Comprehensions open a scope holding their ``for`` targets. The outermost
    iterable is evaluated in the enclosing scope, and walrus targets bind in
    the nearest enclosing non-comprehension scope.
5.  ``global x`` routes bindings of ``x`` to the module scope; ``nonlocal x``
    removes them from the local scope.
6.  ``del x`` inside a function or class body makes ``x`` local to it.

Scopes are built bottom-up: a child is fully populated and sealed before it is
attached to its parent. Reading a scope before it is sealed, or writing to it
afterwards, raises ``ScopeNotSealedError``.
"""

import logging
from typing import AbstractSet, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple, Union

import libcst as cst

from dedupimport.core.errors import ScopeNotSealedError
from dedupimport.core.specs import bound_name, from_import_bound_name
from dedupimport.enums import ScopeKind

logger = logging.getLogger(__name__)

Comprehension = Union[cst.ListComp, cst.SetComp, cst.DictComp, cst.GeneratorExp]


class ScopeNode:
  """
  One lexical scope and the identifiers declared directly in it.
  """

  def __init__(self, node: cst.CSTNode, kind: ScopeKind):
    """
    Args:
        node: The construct defining this scope (Module, FunctionDef, Lambda,
            ClassDef or a comprehension).
        kind: The kind of construct.
    """
    self.node = node
    self.kind = kind
    self.parent: Optional["ScopeNode"] = None
    self.children: List["ScopeNode"] = []
    self._names: Dict[str, cst.CSTNode] = {}
    self._sealed = False

  def __repr__(self) -> str:
    return f"ScopeNode(kind={self.kind.value}, names={sorted(self._names)})"

  @property
  def sealed(self) -> bool:
    return self._sealed

  def declare(self, name: str, decl: cst.CSTNode) -> None:
    """
    Records a declaration. A later declaration of the same name replaces the earlier one.

    Raises:
        ScopeNotSealedError: If the scope is already sealed.
    """
    if self._sealed:
      raise ScopeNotSealedError(f"cannot declare '{name}' in a sealed {self.kind.value} scope")
    self._names[name] = decl

  def attach(self, child: "ScopeNode") -> None:
    """
    Adopts a finished child scope.

    Raises:
        ScopeNotSealedError: If the child is still open or this scope is sealed.
    """
    if not child._sealed:
      raise ScopeNotSealedError(f"{child.kind.value} scope attached before being sealed")
    if self._sealed:
      raise ScopeNotSealedError(f"cannot attach to a sealed {self.kind.value} scope")
    child.parent = self
    self.children.append(child)

  def seal(self) -> None:
    if self._sealed:
      raise ScopeNotSealedError(f"{self.kind.value} scope sealed twice")
    self._sealed = True

  def _assert_sealed(self) -> None:
    if not self._sealed:
      raise ScopeNotSealedError(f"{self.kind.value} scope queried before being sealed")

  @property
  def names(self) -> Mapping[str, cst.CSTNode]:
    """Read-only view of the declarations of this scope."""
    self._assert_sealed()
    return dict(self._names)

  def declared_in(self, name: str) -> bool:
    """
    Returns whether `name` is declared directly in this scope.
    """
    self._assert_sealed()
    return name in self._names

  def lookup(self, name: str) -> Optional[cst.CSTNode]:
    """
    Returns the declaration of `name` in this scope only, or None.
    """
    self._assert_sealed()
    return self._names.get(name)

  def resolve(self, name: str) -> Optional[cst.CSTNode]:
    """
    Finds the declaration `name` refers to when used inside this scope.

    Walks outward to the module scope. Enclosing class scopes are skipped:
    a method body cannot see the names of its class body.

    Args:
        name: Identifier to resolve.

    Returns:
        The defining declaration node, or None if nothing in the file declares it.
    """
    scope: Optional[ScopeNode] = self
    while scope is not None:
      if scope is self or scope.kind != ScopeKind.CLASS:
        decl = scope.lookup(name)
        if decl is not None:
          return decl
      scope = scope.parent
    return None

  def visible_from(self, name: str) -> bool:
    """
    Returns whether `name` is declared in this scope or any enclosing scope it can see.
    """
    return self.resolve(name) is not None

  def walk(self) -> Iterator["ScopeNode"]:
    """Yields this scope and all nested scopes in pre-order."""
    self._assert_sealed()
    yield self
    for child in self.children:
      yield from child.walk()


def index_scopes(root: ScopeNode) -> Dict[cst.CSTNode, ScopeNode]:
  """
  Builds the lookup table from defining syntax node to its scope.

  The table is a non-owning association: syntax nodes know nothing of scopes.
  """
  return {scope.node: scope for scope in root.walk()}


def build_scopes(module: cst.Module, excluded: AbstractSet[cst.CSTNode] = frozenset()) -> ScopeNode:
  """
  Builds the sealed scope tree of a module.

  Args:
      module: The module to analyse.
      excluded: Module-level ``ImportAlias`` nodes to treat as already deleted.

  Returns:
      ScopeNode: The module scope, owning every nested scope.
  """
  root = ScopeNode(module, ScopeKind.MODULE)
  collector = _DeclarationCollector(root, root, excluded=excluded)
  for stmt in module.body:
    stmt.visit(collector)
  root.seal()
  logger.debug("Built %d scopes", sum(1 for _ in root.walk()))
  return root


def _target_names(target: cst.BaseExpression) -> Iterator[str]:
  """Yields the identifiers bound by an assignment target (attributes and subscripts bind none)."""
  if isinstance(target, cst.Name):
    yield target.value
  elif isinstance(target, (cst.Tuple, cst.List)):
    for element in target.elements:
      yield from _target_names(element.value)
  elif isinstance(target, cst.StarredElement):
    yield from _target_names(target.value)


def _iter_params(params: cst.Parameters) -> Iterator[cst.Param]:
  yield from params.posonly_params
  yield from params.params
  if isinstance(params.star_arg, cst.Param):
    yield params.star_arg
  yield from params.kwonly_params
  if params.star_kwarg is not None:
    yield params.star_kwarg


class _DirectiveScanner(cst.CSTVisitor):
  """
  Collects ``global`` and ``nonlocal`` names of one scope body.
  """

  def __init__(self) -> None:
    self.global_names: set = set()
    self.nonlocal_names: set = set()

  def visit_Global(self, node: cst.Global) -> bool:
    self.global_names.update(item.name.value for item in node.names)
    return False

  def visit_Nonlocal(self, node: cst.Nonlocal) -> bool:
    self.nonlocal_names.update(item.name.value for item in node.names)
    return False

  def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
    return False

  def visit_ClassDef(self, node: cst.ClassDef) -> bool:
    return False

  def visit_Lambda(self, node: cst.Lambda) -> bool:
    return False


class _DeclarationCollector(cst.CSTVisitor):
  """
  Records the names declared directly in one scope.

  Constructs that open their own scope are built by a fresh collector and
  attached as children; this collector never walks their interior.
  """

  def __init__(
    self,
    scope: ScopeNode,
    root: ScopeNode,
    global_names: FrozenSet[str] = frozenset(),
    nonlocal_names: FrozenSet[str] = frozenset(),
    excluded: AbstractSet[cst.CSTNode] = frozenset(),
  ):
    self.scope = scope
    self.root = root
    self.global_names = global_names
    self.nonlocal_names = nonlocal_names
    self.excluded = excluded

  def _declare(self, name: str, decl: cst.CSTNode) -> None:
    if name in self.nonlocal_names:
      return
    if name in self.global_names:
      self.root.declare(name, decl)
      return
    self.scope.declare(name, decl)

  def _declare_targets(self, target: cst.BaseExpression, decl: cst.CSTNode) -> None:
    for name in _target_names(target):
      self._declare(name, decl)

  # --- Binding statements ---

  def visit_Assign(self, node: cst.Assign) -> None:
    for target in node.targets:
      self._declare_targets(target.target, node)

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    self._declare_targets(node.target, node)

  def visit_AugAssign(self, node: cst.AugAssign) -> None:
    self._declare_targets(node.target, node)

  def visit_For(self, node: cst.For) -> None:
    self._declare_targets(node.target, node)

  def visit_WithItem(self, node: cst.WithItem) -> None:
    if node.asname:
      self._declare_targets(node.asname.name, node)

  def visit_ExceptHandler(self, node: cst.ExceptHandler) -> None:
    if node.name:
      self._declare_targets(node.name.name, node)

  def visit_ExceptStarHandler(self, node: cst.ExceptStarHandler) -> None:
    if node.name:
      self._declare_targets(node.name.name, node)

  def visit_NamedExpr(self, node: cst.NamedExpr) -> None:
    self._declare_targets(node.target, node)

  def visit_MatchAs(self, node: cst.MatchAs) -> None:
    if node.name:
      self._declare(node.name.value, node)

  def visit_MatchStar(self, node: cst.MatchStar) -> None:
    if node.name:
      self._declare(node.name.value, node)

  def visit_MatchMapping(self, node: cst.MatchMapping) -> None:
    if node.rest:
      self._declare(node.rest.value, node)

  def visit_TypeAlias(self, node: cst.TypeAlias) -> None:
    self._declare(node.name.value, node)

  def visit_Del(self, node: cst.Del) -> None:
    # at module level `del` only unbinds at runtime; names stay module globals
    if self.scope is self.root:
      return
    for name in _target_names(node.target):
      if name not in self.global_names:
        self._declare(name, node)

  def visit_Import(self, node: cst.Import) -> bool:
    for alias in node.names:
      if alias in self.excluded:
        continue
      self._declare(bound_name(alias), alias)
    return False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
    # star imports inject unknown names; nothing can be recorded for them
    if isinstance(node.names, cst.ImportStar):
      return False
    for alias in node.names:
      self._declare(from_import_bound_name(alias), node)
    return False

  def visit_Global(self, node: cst.Global) -> bool:
    return False

  def visit_Nonlocal(self, node: cst.Nonlocal) -> bool:
    return False

  # --- Nested scopes ---

  def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
    self._declare(node.name.value, node)
    for decorator in node.decorators:
      decorator.visit(self)
    node.params.visit(self)
    if node.returns:
      node.returns.visit(self)
    self.scope.attach(_build_function(node, self.root))
    return False

  def visit_Lambda(self, node: cst.Lambda) -> bool:
    node.params.visit(self)
    self.scope.attach(_build_lambda(node, self.root))
    return False

  def visit_ClassDef(self, node: cst.ClassDef) -> bool:
    self._declare(node.name.value, node)
    for decorator in node.decorators:
      decorator.visit(self)
    for arg in (*node.bases, *node.keywords):
      arg.visit(self)
    self.scope.attach(_build_class(node, self.root))
    return False

  def _visit_comprehension(self, node: Comprehension) -> bool:
    node.for_in.iter.visit(self)
    child, escaping = _build_comprehension(node, self.root)
    for name, decl in escaping:
      self._declare(name, decl)
    self.scope.attach(child)
    return False

  def visit_ListComp(self, node: cst.ListComp) -> bool:
    return self._visit_comprehension(node)

  def visit_SetComp(self, node: cst.SetComp) -> bool:
    return self._visit_comprehension(node)

  def visit_DictComp(self, node: cst.DictComp) -> bool:
    return self._visit_comprehension(node)

  def visit_GeneratorExp(self, node: cst.GeneratorExp) -> bool:
    return self._visit_comprehension(node)


class _ComprehensionCollector(_DeclarationCollector):
  """
  Collector for comprehension bodies: walrus targets escape to the enclosing scope.
  """

  def __init__(self, scope: ScopeNode, root: ScopeNode):
    super().__init__(scope, root)
    self.escaping: List[Tuple[str, cst.CSTNode]] = []

  def _declare(self, name: str, decl: cst.CSTNode) -> None:
    self.escaping.append((name, decl))


def _collect_body(scope: ScopeNode, body: cst.CSTNode, root: ScopeNode) -> None:
  scanner = _DirectiveScanner()
  body.visit(scanner)
  collector = _DeclarationCollector(
    scope,
    root,
    frozenset(scanner.global_names),
    frozenset(scanner.nonlocal_names),
  )
  body.visit(collector)


def _build_function(node: cst.FunctionDef, root: ScopeNode) -> ScopeNode:
  scope = ScopeNode(node, ScopeKind.FUNCTION)
  for param in _iter_params(node.params):
    scope.declare(param.name.value, param)
  _collect_body(scope, node.body, root)
  scope.seal()
  return scope


def _build_lambda(node: cst.Lambda, root: ScopeNode) -> ScopeNode:
  scope = ScopeNode(node, ScopeKind.LAMBDA)
  for param in _iter_params(node.params):
    scope.declare(param.name.value, param)
  node.body.visit(_DeclarationCollector(scope, root))
  scope.seal()
  return scope


def _build_class(node: cst.ClassDef, root: ScopeNode) -> ScopeNode:
  scope = ScopeNode(node, ScopeKind.CLASS)
  _collect_body(scope, node.body, root)
  scope.seal()
  return scope


def _build_comprehension(node: Comprehension, root: ScopeNode) -> Tuple[ScopeNode, List[Tuple[str, cst.CSTNode]]]:
  scope = ScopeNode(node, ScopeKind.COMPREHENSION)
  collector = _ComprehensionCollector(scope, root)

  if isinstance(node, cst.DictComp):
    node.key.visit(collector)
    node.value.visit(collector)
  else:
    node.elt.visit(collector)

  comp_for: Optional[cst.CompFor] = node.for_in
  outermost = True
  while comp_for is not None:
    for name in _target_names(comp_for.target):
      scope.declare(name, comp_for)
    if not outermost:
      comp_for.iter.visit(collector)
    for cond in comp_for.ifs:
      cond.visit(collector)
    comp_for = comp_for.inner_for_in
    outermost = False

  scope.seal()
  return scope, collector.escaping
