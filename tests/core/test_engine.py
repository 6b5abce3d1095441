"""
Tests for the DedupeEngine pipeline.

Verifies that:
1. The documented end-to-end scenarios hold (keep policies, blank imports,
   unsafe renames leaving the file untouched).
2. The pipeline is idempotent.
3. Import-only mode trims without rewriting.
4. Parse errors and unsafe rewrites are reported, internal errors propagate.
5. Removals that would leave a name unbound are refused.
"""

from unittest.mock import patch

import libcst as cst
import pytest

import dedupimport
from dedupimport.core.engine import DedupeEngine
from dedupimport.core.errors import StructuralError


def test_scenario_unreferenced_alias_is_removed(run_dedupe):
  """
  Scenario: `import m` and `import m as x`, no references, policy `unnamed`.
  Expectation: The aliased import is removed without diagnostics.
  """
  result = run_dedupe("import m\nimport m as x\n", keep="unnamed")

  assert result.success
  assert result.changed
  assert result.code == "import m\n"
  assert result.removed == ["import m as x"]
  assert not result.has_errors


def test_scenario_local_variable_blocks_rename(run_dedupe):
  """
  Scenario: `x.Foo()` inside a function that declares a local `m`.
  Expectation: A single diagnostic for x -> m and the source left unmodified.
  """
  code = """
  import m
  import m as x


  def f():
    m = 1
    return x.Foo()
  """
  result = run_dedupe(code, keep="unnamed")

  assert not result.success
  assert result.errors == [
    "test.py:7:10: cannot rewrite `x` to `m`: identifier `m` is already in scope "
    "and would not refer to the intended module"
  ]
  assert result.code.startswith("import m\nimport m as x\n")
  assert not result.changed


def test_scenario_named_keeps_shortest_alias(run_dedupe):
  """
  Scenario: `import m as a` and `import m as bb`, policy `named`.
  Expectation: `a` kept, every `bb.X` rewritten to `a.X`.
  """
  code = """
  import m as a
  import m as bb

  bb.X()
  print(bb.Y, a.Z)
  """
  result = run_dedupe(code, keep="named")

  assert result.code == "import m as a\n\na.X()\nprint(a.Y, a.Z)\n"


def test_scenario_blank_imports_never_merge(run_dedupe):
  """
  Scenario: `import m as _` and `import m`.
  Expectation: Both retained untouched.
  """
  code = "import m as _\nimport m\n"
  result = run_dedupe(code)

  assert result.success
  assert not result.changed
  assert result.code == code


def test_scenario_first_policy_with_three_aliases(run_dedupe):
  """
  Scenario: Three aliases of the same path, policy `first`.
  Expectation: The first kept, the others removed and their references rewritten.
  """
  code = """
  import m as a
  import m as b
  import m as c

  b.f()
  c.g()
  """
  result = run_dedupe(code, keep="first")

  assert result.code == "import m as a\n\na.f()\na.g()\n"
  assert result.removed == ["import m as b", "import m as c"]


def test_comment_policy_keeps_documented_import(run_dedupe):
  code = """
  import m as x
  # the canonical one
  import m as y

  x.f()
  """
  result = run_dedupe(code, keep="comment")

  assert result.code == "# the canonical one\nimport m as y\n\ny.f()\n"


def test_duplicates_on_one_line(run_dedupe):
  result = run_dedupe("import m, m as x\nx.f()\n")

  assert result.code == "import m\nm.f()\n"


def test_dotted_survivor(run_dedupe):
  code = """
  import os.path
  import os.path as osp

  osp.join("a")
  """
  result = run_dedupe(code)

  assert result.code == 'import os.path\n\nos.path.join("a")\n'


def test_idempotence(run_dedupe):
  """
  Running the pipeline on its own output is a no-op.
  """
  code = """
  import json
  import json as j
  import sys, json as js

  def dump(obj):
    return j.dumps(obj) + js.dumps(obj)
  """
  first = run_dedupe(code)
  second = DedupeEngine().run(first.code, "test.py")

  assert first.changed
  assert not second.changed
  assert second.code == first.code


def test_import_only_does_not_rewrite(run_dedupe):
  result = run_dedupe("import m\nimport m as x\nx.Foo()\n", import_only=True)

  assert result.code == "import m\nx.Foo()\n"


def test_completeness_of_diagnostics(run_dedupe):
  """
  N unsafe references produce exactly N diagnostics.
  """
  code = """
  import m
  import m as x

  def f(m):
    return x.a

  def g(m):
    return x.b

  h = lambda m: x.c
  """
  result = run_dedupe(code)

  assert len(result.errors) == 3


def test_package_name_of_removed_dotted_import_still_used(run_dedupe):
  """
  Scenario: `import os.path` also binds `os`, which `os.getcwd()` relies on.
  Expectation: The removal is refused instead of leaving `os` undefined.
  """
  code = "import os.path\nimport os.path as p\nprint(os.getcwd(), p.sep)\n"
  result = run_dedupe(code, keep="named")

  assert not result.success
  assert result.errors == [
    "test.py:3:7: cannot remove `import os.path`: `os` is still used here and would no longer be bound"
  ]
  assert result.code == code


def test_use_before_later_survivor_is_refused(run_dedupe):
  """
  Scenario: The shorter alias survives but is imported after a module-level use.
  Expectation: The rename would run before `o` exists, so the file is refused.
  """
  code = "import os as oo\nSEP = oo.sep\nimport os as o\n"
  result = run_dedupe(code, keep="named")

  assert not result.success
  assert result.errors == ["test.py:2:7: cannot rewrite `oo` to `o`: `o` is not bound until line 3"]
  assert result.code == code


def test_same_name_used_before_later_survivor_is_refused(run_dedupe):
  code = """
  import os
  SEP = os.sep
  # canonical
  import os
  """
  result = run_dedupe(code, keep="comment")

  assert result.errors == ["test.py:2:7: cannot remove the earlier import of `os`: `os` is not bound until line 4"]


def test_later_survivor_used_only_in_functions(run_dedupe):
  """
  Function bodies run after the whole module is imported; the later survivor is bound by then.
  """
  code = """
  import os


  def cwd():
    return os.getcwd()


  # canonical
  import os
  """
  result = run_dedupe(code, keep="comment")

  assert result.success
  assert result.code.count("import os") == 1
  assert result.code.endswith("# canonical\nimport os\n")


def test_nested_imports_are_not_deduplicated(run_dedupe):
  code = "import m\n\ndef f():\n  import m as x\n  return x.f()\n"
  result = run_dedupe(code)

  assert not result.changed
  assert result.code == code


def test_sort_imports_option(run_dedupe):
  code = "import zlib\nimport os\nimport os as o\no.sep\n"

  assert run_dedupe(code, sort_imports=True).code == "import os\nimport zlib\nos.sep\n"
  assert run_dedupe(code).code == "import zlib\nimport os\nos.sep\n"


def test_parse_error_is_reported(run_dedupe):
  result = run_dedupe("def (:\n")

  assert not result.success
  assert result.errors[0].startswith("test.py: ")
  assert result.code == "def (:\n"


def test_process_returns_none_without_duplicates():
  engine = DedupeEngine()

  assert engine.process(cst.parse_module("import a\nimport b\n")) is None


def test_structural_errors_propagate():
  """
  Internal invariant violations are never turned into a failed result.
  """
  engine = DedupeEngine()

  with patch("dedupimport.core.engine.trim_import_decls", side_effect=StructuralError("broken")):
    with pytest.raises(StructuralError):
      engine.run("import m\nimport m as x\n")


def test_dedupe_convenience_api():
  assert dedupimport.dedupe("import os\nimport os as o\nprint(o.sep)\n") == "import os\nprint(os.sep)\n"

  with pytest.raises(ValueError, match="Deduplication failed"):
    dedupimport.dedupe("import m\nimport m as x\ndef f(m):\n  return x.y\n")
