"""
Entry point for module execution (``python -m dedupimport``).

This module delegates execution to the CLI handler in ``dedupimport.cli.__main__``.
"""

import sys
from dedupimport.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
