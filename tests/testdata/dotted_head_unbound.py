# dedupimport -keep named

import os.path
import os.path as p

print(os.path.join("a"), os.getcwd(), p.sep)
