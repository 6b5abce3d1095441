"""
dedupimport Package.

Collapses duplicate imports of the same module in a Python file into a single
canonical import, and renames every qualified reference that went through a
removed alias. A rename is only performed if no other identifier visible at
that point captures the surviving name; otherwise every unsafe reference of the
file is reported and the file is left untouched.

Usage
-----

Simple String Deduplication
^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import dedupimport
    code = "import os\\nimport os as o\\nprint(o.sep)\\n"
    print(dedupimport.dedupe(code))
    # import os
    # print(os.sep)

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from dedupimport import DedupeEngine, RuntimeConfig

    engine = DedupeEngine(RuntimeConfig(keep="named"))
    res = engine.run(code, filename="example.py")

    if res.success:
        print(res.code)
    else:
        print("\\n".join(res.errors))
"""

from typing import Union

from dedupimport.config import RuntimeConfig
from dedupimport.core.engine import DedupeEngine, DedupeResult
from dedupimport.core.errors import RewriteError, RewriteViolation, StructuralError
from dedupimport.enums import KeepPolicy

__version__ = "0.0.1"


def dedupe(
  code: str,
  keep: Union[str, KeepPolicy] = KeepPolicy.UNNAMED,
  import_only: bool = False,
  sort_imports: bool = False,
  filename: str = "<string>",
) -> str:
  """
  Removes duplicate imports from a string of Python code.

  Args:
      code (str): The source code.
      keep (str): Which import of a duplicate group survives: "first",
          "unnamed", "named" or "comment".
      import_only (bool): If True, only imports are modified.
      sort_imports (bool): If True, adjacent imports are sorted afterwards.
      filename (str): Name used in diagnostics.

  Returns:
      str: The deduplicated source code (unchanged if there were no duplicates).

  Raises:
      ValueError: If the code cannot be parsed or a reference cannot be renamed safely.
  """
  config = RuntimeConfig(keep=keep, import_only=import_only, sort_imports=sort_imports)
  engine = DedupeEngine(config)

  result = engine.run(code, filename)

  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Deduplication failed:\n{error_msg}")

  return result.code


__all__ = [
  "DedupeEngine",
  "DedupeResult",
  "KeepPolicy",
  "RewriteError",
  "RewriteViolation",
  "RuntimeConfig",
  "StructuralError",
  "dedupe",
  "__version__",
]
