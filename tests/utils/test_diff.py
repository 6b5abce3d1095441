"""
Tests for unified diff rendering.
"""

from dedupimport.utils.diff import unified_diff


def test_headers_and_hunks():
  diff = unified_diff("import m\nimport m as x\nx.f()\n", "import m\nm.f()\n", "pkg/mod.py")

  lines = diff.splitlines()
  assert lines[0] == "--- pkg/mod.py.orig"
  assert lines[1] == "+++ pkg/mod.py"
  assert "-import m as x" in lines
  assert "-x.f()" in lines
  assert "+m.f()" in lines


def test_identical_content_gives_empty_diff():
  assert unified_diff("a = 1\n", "a = 1\n", "f.py") == ""


def test_missing_final_newline_is_marked():
  diff = unified_diff("import m\nimport m as x", "import m", "f.py")

  assert "\\ No newline at end of file\n" in diff
  assert diff.endswith("\n")
