# dedupimport -keep comment

import json as j
# json is used for the wire format
import json

data = j.dumps({})
