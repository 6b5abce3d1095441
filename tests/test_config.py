"""
Tests for Configuration Loading.

Verifies that:
1. Defaults match the documented behaviour.
2. Keep policies are validated and normalized.
3. `[tool.dedupimport]` in pyproject.toml is honoured, searching parent directories.
4. Explicit arguments override the TOML settings.
"""

import pytest
from pydantic import ValidationError

from dedupimport.config import RuntimeConfig
from dedupimport.enums import KeepPolicy


def write_pyproject(directory, body):
  (directory / "pyproject.toml").write_text(body, encoding="utf-8")


def test_defaults():
  config = RuntimeConfig()

  assert config.keep == KeepPolicy.UNNAMED
  assert config.import_only is False
  assert config.sort_imports is False


def test_keep_is_normalized():
  assert RuntimeConfig(keep=" Named ").keep == KeepPolicy.NAMED


def test_unknown_keep_is_rejected():
  with pytest.raises(ValidationError, match="Unknown keep policy"):
    RuntimeConfig(keep="last")


def test_load_reads_tool_section(tmp_path):
  write_pyproject(tmp_path, '[tool.dedupimport]\nkeep = "comment"\nimport_only = true\nsort_imports = true\n')

  config = RuntimeConfig.load(search_path=tmp_path)

  assert config.keep == KeepPolicy.COMMENT
  assert config.import_only is True
  assert config.sort_imports is True


def test_load_searches_parents(tmp_path):
  write_pyproject(tmp_path, '[tool.dedupimport]\nkeep = "first"\n')
  nested = tmp_path / "pkg" / "sub"
  nested.mkdir(parents=True)

  assert RuntimeConfig.load(search_path=nested).keep == KeepPolicy.FIRST


def test_arguments_override_toml(tmp_path):
  write_pyproject(tmp_path, '[tool.dedupimport]\nkeep = "first"\nimport_only = true\n')

  config = RuntimeConfig.load(keep="named", import_only=False, search_path=tmp_path)

  assert config.keep == KeepPolicy.NAMED
  assert config.import_only is False


def test_pyproject_without_section_gives_defaults(tmp_path):
  write_pyproject(tmp_path, '[project]\nname = "other"\n')

  assert RuntimeConfig.load(search_path=tmp_path) == RuntimeConfig()


def test_malformed_pyproject_gives_defaults(tmp_path):
  write_pyproject(tmp_path, "[tool.dedupimport\nkeep = \n")

  assert RuntimeConfig.load(search_path=tmp_path) == RuntimeConfig()


def test_invalid_policy_in_toml_is_rejected(tmp_path):
  write_pyproject(tmp_path, '[tool.dedupimport]\nkeep = "everything"\n')

  with pytest.raises(ValueError):
    RuntimeConfig.load(search_path=tmp_path)
