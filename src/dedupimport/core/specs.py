"""
Import Specification Collection.

Extracts the module-level import specifications of a file from its LibCST tree.
One specification is produced per ``ImportAlias`` of a top-level ``import``
statement, plus one per top-level ``from ... import *`` (a "dot" import that
injects names straight into the module scope).

Also hosts the small name helpers shared by the rest of the core
(dotted-name flattening and construction, bound-name extraction).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

DOT_ALIAS = "."
BLANK_ALIAS = "_"


@dataclass(frozen=True)
class ImportSpecification:
  """
  One import entry of a file.
  """

  path: str
  """Normalized dotted module path (e.g. "os.path")."""

  alias: Optional[str]
  """Explicit local name, ``"."`` for star imports, ``"_"`` for blank imports."""

  has_comment: bool
  """True if a comment sits directly above the statement or trails it."""

  line: int
  column: int
  index: int
  """Declaration order within the file."""

  node: cst.CSTNode = field(compare=False, repr=False, default=None)
  """The ``ImportAlias`` (or ``ImportFrom`` for star imports) this spec came from."""

  @property
  def is_dot(self) -> bool:
    return self.alias == DOT_ALIAS

  @property
  def is_blank(self) -> bool:
    return self.alias == BLANK_ALIAS

  @property
  def label(self) -> str:
    """
    The spelling code uses to reach the module.

    ``import a.b as x`` is reached as ``x``; ``import a.b`` as ``a.b``.
    """
    return self.alias if self.alias else self.path


def get_full_name(node: Union[cst.Name, cst.Attribute]) -> str:
  """
  Recursively resolves a CST Name or Attribute chain to a dot-separated string.

  Args:
      node: The CST node representing the identifier.

  Returns:
      str: The dotted name (e.g. "os.path"), or "" if the node is not a plain
      Name/Attribute chain (calls, subscripts, ...).
  """
  if isinstance(node, cst.Name):
    return node.value
  elif isinstance(node, cst.Attribute):
    base = get_full_name(node.value)
    if not base:
      return ""
    return f"{base}.{node.attr.value}"
  return ""


def create_dotted_name(name_str: str) -> Union[cst.Name, cst.Attribute]:
  """
  Creates a CST node structure for a dotted path string.

  Args:
      name_str (str): Dot-separated path (e.g. "os.path").

  Returns:
      Union[cst.Name, cst.Attribute]: The constructed node.
  """
  parts = name_str.split(".")
  node = cst.Name(parts[0])
  for part in parts[1:]:
    node = cst.Attribute(value=node, attr=cst.Name(part))
  return node


def head_name(label: str) -> str:
  """Returns the leading identifier of a dotted label."""
  return label.split(".", 1)[0]


def alias_name(alias_node: cst.ImportAlias) -> Optional[str]:
  """
  Returns the ``as`` name of an import alias, if any.
  """
  if alias_node.asname:
    target = alias_node.asname.name
    if isinstance(target, cst.AssignTarget):
      target = target.target
    if isinstance(target, cst.Name):
      return target.value
  return None


def bound_name(alias_node: cst.ImportAlias) -> str:
  """
  Returns the identifier an ``import`` alias binds in its scope.

  ``import xml.etree as et`` binds 'et'; ``import xml.etree`` binds 'xml'.
  """
  explicit = alias_name(alias_node)
  if explicit:
    return explicit
  return head_name(get_full_name(alias_node.name))


def from_import_bound_name(alias_node: cst.ImportAlias) -> str:
  """
  Returns the identifier a ``from ... import`` alias binds.
  """
  return alias_name(alias_node) or get_full_name(alias_node.name)


def star_import_path(node: cst.ImportFrom) -> str:
  """Dotted path of a ``from ... import *`` statement, keeping relative dots."""
  dots = "." * len(node.relative)
  module = get_full_name(node.module) if node.module else ""
  return f"{dots}{module}"


def _has_attached_comment(line: cst.SimpleStatementLine, header: Sequence[cst.EmptyLine]) -> bool:
  if line.trailing_whitespace.comment is not None:
    return True
  # the last line above the statement is its doc comment when it holds a comment
  above = line.leading_lines or header
  return bool(above) and above[-1].comment is not None


def collect_import_specs(wrapper: MetadataWrapper) -> List[ImportSpecification]:
  """
  Collects every module-level import specification, in declaration order.

  Imports nested in functions, classes or compound statements are not
  collected; they are ordinary declarations of their own scopes.

  Args:
      wrapper: Metadata wrapper around the parsed module. Spec nodes belong to
          ``wrapper.module``.

  Returns:
      List[ImportSpecification]: The collected specifications.
  """
  positions = wrapper.resolve(PositionProvider)
  module = wrapper.module
  specs: List[ImportSpecification] = []

  for idx, stmt in enumerate(module.body):
    if not isinstance(stmt, cst.SimpleStatementLine):
      continue
    commented = _has_attached_comment(stmt, module.header if idx == 0 else ())

    for small in stmt.body:
      if isinstance(small, cst.Import):
        for alias in small.names:
          start = positions[alias].start
          specs.append(
            ImportSpecification(
              path=get_full_name(alias.name),
              alias=alias_name(alias),
              has_comment=commented,
              line=start.line,
              column=start.column + 1,
              index=len(specs),
              node=alias,
            )
          )
      elif isinstance(small, cst.ImportFrom) and isinstance(small.names, cst.ImportStar):
        start = positions[small].start
        specs.append(
          ImportSpecification(
            path=star_import_path(small),
            alias=DOT_ALIAS,
            has_comment=commented,
            line=start.line,
            column=start.column + 1,
            index=len(specs),
            node=small,
          )
        )

  return specs
