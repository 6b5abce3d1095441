"""
Orchestration Engine for Import Deduplication.

This module provides the `DedupeEngine`, the driver of the deduplication of a
single file. The pipeline consists of:

1.  **Collection**: module-level import specifications are read off the LibCST
    tree, with positions and comment flags.
2.  **Resolution**: specifications are grouped by module path and every group
    of duplicates keeps exactly one survivor, chosen by the `KeepPolicy`.
    If nothing is marked for removal the file is reported unchanged.
3.  **Rewriting** (unless `import_only`): the scope tree of the module is
    built without the removed imports and every qualified reference through a
    removed label is renamed to the surviving label. Unsafe renames, uses of
    names the removal leaves unbound, and import-time uses ahead of a later
    survivor abort the file with a `RewriteError` listing every violation.
4.  **Trimming**: removed import aliases are dropped from their statements.
5.  **Ordering** (if `sort_imports`): adjacent import lines are sorted.

Files are independent: each run builds its own scope tree and rewrite rules
and discards them afterwards.
"""

import logging
from typing import List, Optional, Tuple

import libcst as cst
from libcst.metadata import MetadataWrapper
from pydantic import BaseModel, Field

from dedupimport.config import RuntimeConfig
from dedupimport.core.errors import RewriteError
from dedupimport.core.ordering import sort_imports
from dedupimport.core.resolver import MarkedSpec, mark_duplicates
from dedupimport.core.rewriter import build_late_survivors, build_rewrite_rules, rewrite_references
from dedupimport.core.specs import ImportSpecification, collect_import_specs
from dedupimport.core.trimmer import trim_import_decls

logger = logging.getLogger(__name__)


class DedupeResult(BaseModel):
  """
  Structured result of a single file deduplication.
  """

  code: str = Field(default="", description="The resulting source code (the input on failure).")
  changed: bool = Field(default=False, description="True if the code differs from the input.")
  success: bool = Field(default=True, description="True if the file was processed without failures.")
  errors: List[str] = Field(default_factory=list, description="Parse errors or unsafe rewrite diagnostics.")
  removed: List[str] = Field(default_factory=list, description="The import specifications that were dropped.")

  @property
  def has_errors(self) -> bool:
    """
    Returns True if any errors were recorded.

    Returns:
        bool: True if errors list is non-empty.
    """
    return len(self.errors) > 0


def describe_spec(spec: ImportSpecification) -> str:
  """Renders a specification the way it is written in source."""
  if spec.alias:
    return f"import {spec.path} as {spec.alias}"
  return f"import {spec.path}"


class DedupeEngine:
  """
  Deduplicates the imports of one file at a time.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None):
    """
    Args:
        config: Runtime settings. Defaults to `RuntimeConfig()`.
    """
    self.config = config or RuntimeConfig()

  def parse(self, code: str) -> cst.Module:
    """
    Parses source code into a LibCST Module.

    Raises:
        libcst.ParserSyntaxError: If the code is not valid Python.
    """
    return cst.parse_module(code)

  def process(self, module: cst.Module, filename: str = "<unknown>") -> Optional[cst.Module]:
    """
    Runs the deduplication pipeline over a parsed module.

    Args:
        module: The parsed module. It is not modified.
        filename: Name used in diagnostics.

    Returns:
        Optional[cst.Module]: The new module, or None if the file holds no duplicates.

    Raises:
        RewriteError: If a qualified reference cannot be renamed safely.
        StructuralError: If an internal invariant is broken.
    """
    new_module, _ = self._dedupe(module, filename)
    return new_module

  def _dedupe(self, module: cst.Module, filename: str) -> Tuple[Optional[cst.Module], List[MarkedSpec]]:
    wrapper = MetadataWrapper(module)
    specs = collect_import_specs(wrapper)
    marked = mark_duplicates(specs, self.config.keep)

    removed = [entry for entry in marked if entry.remove]
    if not removed:
      return None, []

    surviving_nodes = {entry.spec.node for entry in marked if not entry.remove}
    removed_nodes = {entry.spec.node for entry in removed}
    tree = wrapper.module

    if not self.config.import_only:
      rules = build_rewrite_rules(marked)
      for rule in rules.values():
        logger.debug("%s: rewriting `%s` to `%s`", filename, rule.from_name, rule.to_name)
      late = build_late_survivors(marked)
      tree = rewrite_references(tree, rules, filename, removed=removed_nodes, late=late)

    # rewriting leaves import nodes untouched, so the alias sets still match
    tree = trim_import_decls(tree, surviving_nodes, removed_nodes)

    if self.config.sort_imports:
      tree = sort_imports(tree)

    return tree, removed

  def run(self, code: str, filename: str = "<unknown>") -> DedupeResult:
    """
    Parses, deduplicates and prints one file.

    Parse failures and unsafe rewrites are reported in the result; internal
    invariant violations propagate.

    Args:
        code: The source code.
        filename: Name used in diagnostics.

    Returns:
        DedupeResult: The outcome, carrying the original code on failure.
    """
    try:
      module = self.parse(code)
    except cst.ParserSyntaxError as e:
      return DedupeResult(code=code, success=False, errors=[f"{filename}: {e}"])

    try:
      new_module, removed = self._dedupe(module, filename)
    except RewriteError as e:
      return DedupeResult(code=code, success=False, errors=[str(v) for v in e.violations])

    if new_module is None:
      return DedupeResult(code=code)

    new_code = new_module.code
    return DedupeResult(
      code=new_code,
      changed=new_code != code,
      removed=[describe_spec(entry.spec) for entry in removed],
    )
