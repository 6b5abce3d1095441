# dedupimport -keep unnamed -sort

import sys
import collections
import collections as co

# local helpers
import zipfile
import csv

print(co.OrderedDict, sys.path, zipfile.ZipFile, csv.reader)
