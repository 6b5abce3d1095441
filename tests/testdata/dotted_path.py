# dedupimport -keep named

import xml.etree.ElementTree
import xml.etree.ElementTree as ET

tree = xml.etree.ElementTree.parse("a.xml")
root = ET.fromstring("<a/>")
