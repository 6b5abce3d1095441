# dedupimport -keep named

import collections as coll
import collections as c
import collections

Counter = coll.Counter
deque = collections.deque
