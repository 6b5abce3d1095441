# dedupimport -keep unnamed

import logging
import logging as log

LOGGER = log.getLogger(__name__)
registry = {"log": log}
