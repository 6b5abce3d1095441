"""
Runtime Configuration Store.

Settings are resolved in order of precedence: explicit arguments (usually the
CLI flags), then the ``[tool.dedupimport]`` table of the nearest
``pyproject.toml``, then the field defaults.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from dedupimport.enums import KeepPolicy

if sys.version_info >= (3, 11):
  import tomllib
else:
  try:
    import tomli as tomllib
  except ImportError:
    tomllib = None  # type: ignore

TOOL_SECTION = "dedupimport"


class RuntimeConfig(BaseModel):
  """
  Configuration container for the deduplication engine.
  """

  keep: KeepPolicy = Field(KeepPolicy.UNNAMED, description="Which import of a duplicate group survives.")
  import_only: bool = Field(False, description="If True, only trim imports; never rewrite references.")
  sort_imports: bool = Field(False, description="If True, canonicalize import ordering after a rewrite.")

  @field_validator("keep", mode="before")
  @classmethod
  def validate_keep(cls, v: Union[str, KeepPolicy]) -> KeepPolicy:
    """
    Normalizes the keep policy.

    Args:
        v: Policy name (case-insensitive) or enum member.

    Returns:
        KeepPolicy: The parsed policy.

    Raises:
        ValueError: If the policy is unknown.
    """
    if isinstance(v, KeepPolicy):
      return v
    v_clean = str(v).lower().strip()
    try:
      return KeepPolicy(v_clean)
    except ValueError:
      known = ", ".join(p.value for p in KeepPolicy)
      raise ValueError(f"Unknown keep policy: '{v_clean}'. Supported policies: {known}")

  @classmethod
  def load(
    cls,
    keep: Optional[Union[str, KeepPolicy]] = None,
    import_only: Optional[bool] = None,
    sort_imports: Optional[bool] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with explicit arguments.

    Args:
        keep: Override for the keep policy.
        import_only: Override for import-only mode.
        sort_imports: Override for import sorting.
        search_path: Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    final_keep = keep or toml_config.get("keep", KeepPolicy.UNNAMED)

    if import_only is not None:
      final_import_only = import_only
    else:
      final_import_only = bool(toml_config.get("import_only", False))

    if sort_imports is not None:
      final_sort = sort_imports
    else:
      final_sort = bool(toml_config.get("sort_imports", False))

    return cls(keep=final_keep, import_only=final_import_only, sort_imports=final_sort)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Recursively searches parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  if not tomllib:
    return {}, None

  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get(TOOL_SECTION, {}), parent

  return {}, None
