# dedupimport -keep unnamed

import os

# third party
import json as js
import json


def dump(obj):
  return js.dumps(obj), os.sep
