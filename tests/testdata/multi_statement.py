# dedupimport -keep first

import sys as system; import sys, os
import os as operating_system  # keep me

print(system.argv, operating_system.sep, sys.path)
