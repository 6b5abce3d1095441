"""
Enumerations for dedupimport.

This module defines the enumerations shared by configuration, the duplicate
resolver and the scope model.
"""

from enum import Enum


class KeepPolicy(str, Enum):
  """
  Tie-break policy selecting which import of a duplicate group survives.
  """

  FIRST = "first"  # declaration order
  UNNAMED = "unnamed"  # first import without an alias
  NAMED = "named"  # shortest alias
  COMMENT = "comment"  # first import carrying a comment


class ScopeKind(str, Enum):
  """
  Kind of syntax construct that opened a lexical scope.
  """

  MODULE = "module"
  FUNCTION = "function"
  LAMBDA = "lambda"
  CLASS = "class"
  COMPREHENSION = "comprehension"
