# dedupimport -keep named

import os as oo

SEP = oo.sep

import os as o


def cwd():
  return oo.getcwd()
