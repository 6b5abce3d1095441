# dedupimport -keep unnamed

import os
import os as o
import sys


def cwd():
  return o.getcwd()


print(o.sep, sys.argv)
