# dedupimport -keep unnamed

import re
import re as regex


def match(re, text):
  return regex.match(re, text)


def search(text):
  re = regex.compile("a+")
  return regex.search(re, text)
