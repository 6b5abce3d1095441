"""
Tests for Import Specification Collection.

Verifies that:
1. One specification is collected per module-level import alias, in order.
2. Star imports are collected as dot imports, `as _` as blank imports.
3. Imports nested in functions or blocks are not collected.
4. Comments directly above a statement, or trailing it, are detected.
5. Positions are 1-based.
"""

import libcst as cst
from libcst.metadata import MetadataWrapper

from dedupimport.core.specs import (
  ImportSpecification,
  bound_name,
  collect_import_specs,
  create_dotted_name,
  get_full_name,
  star_import_path,
)


def collect(code):
  return collect_import_specs(MetadataWrapper(cst.parse_module(code)))


def test_collects_aliases_in_declaration_order():
  """
  Scenario: Mixed module-level imports.
  Expectation: One spec per alias, indices follow declaration order.
  """
  code = '"""Doc."""\nimport os\nimport os.path as osp, sys\n'
  specs = collect(code)

  assert [(s.path, s.alias) for s in specs] == [("os", None), ("os.path", "osp"), ("sys", None)]
  assert [s.index for s in specs] == [0, 1, 2]
  assert [s.label for s in specs] == ["os", "osp", "sys"]


def test_positions_are_one_based():
  """
  Verify line and column of the alias itself.
  """
  specs = collect("x = 1\nimport os\n")

  assert specs[0].line == 2
  assert specs[0].column == 8


def test_dot_and_blank_imports():
  """
  Scenario: `from m import *` and `import m as _`.
  Expectation: Flagged as dot and blank specs respectively.
  """
  specs = collect("from m import *\nimport m as _\nfrom m import name\n")

  assert len(specs) == 2
  dot, blank = specs
  assert dot.is_dot and dot.path == "m"
  assert isinstance(dot.node, cst.ImportFrom)
  assert blank.is_blank and not blank.is_dot
  assert isinstance(blank.node, cst.ImportAlias)


def test_nested_imports_are_ignored():
  """
  Imports inside functions and compound statements bind other scopes.
  """
  code = "import m\n\ndef f():\n  import m as x\n\nif True:\n  import m as y\n"
  specs = collect(code)

  assert [s.label for s in specs] == ["m"]


def test_comment_detection():
  """
  Scenario: Comments above, trailing, and separated by a blank line.
  Expectation: Only directly attached comments count.
  """
  code = "import a\n# about b\nimport b\nimport c  # trailing\n# detached\n\nimport d\n"
  specs = collect(code)

  assert {s.path: s.has_comment for s in specs} == {"a": False, "b": True, "c": True, "d": False}


def test_comment_on_first_statement():
  """
  A comment at the very top of the file documents the first statement.
  """
  specs = collect("# the os module\nimport os\n")

  assert specs[0].has_comment is True


def test_all_aliases_of_a_line_share_its_comment():
  specs = collect("import a, b  # both\n")

  assert [s.has_comment for s in specs] == [True, True]


def test_relative_star_import_path():
  """
  Relative dots are kept in the path of a star import.
  """
  node = cst.parse_statement("from ..pkg.sub import *\n").body[0]
  assert star_import_path(node) == "..pkg.sub"

  node = cst.parse_statement("from . import *\n").body[0]
  assert star_import_path(node) == "."


def test_label_prefers_alias():
  spec = ImportSpecification(path="a.b", alias=None, has_comment=False, line=1, column=1, index=0)
  aliased = ImportSpecification(path="a.b", alias="ab", has_comment=False, line=2, column=1, index=1)

  assert spec.label == "a.b"
  assert aliased.label == "ab"


def test_name_helpers():
  """
  Verify flattening and construction of dotted names.
  """
  expr = cst.parse_expression("a.b.c")
  assert get_full_name(expr) == "a.b.c"
  assert get_full_name(cst.parse_expression("f().x")) == ""

  node = create_dotted_name("os.path")
  assert cst.Module([]).code_for_node(node) == "os.path"

  alias = cst.parse_statement("import a.b\n").body[0].names[0]
  assert bound_name(alias) == "a"
  alias = cst.parse_statement("import a.b as c\n").body[0].names[0]
  assert bound_name(alias) == "c"
