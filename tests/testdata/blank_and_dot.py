# dedupimport -keep unnamed

from os.path import *
import os.path as _
import os.path

print(join("a", "b"), os.path.sep)
