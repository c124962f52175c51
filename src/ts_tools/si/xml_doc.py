"""Reading and writing XML documents that hold a list of tables."""

import xml.etree.ElementTree as ET
from typing import Sequence

import ts_tools.si.table as table
from ts_tools.si.standards import Context
from ts_tools.si.xml_util import InvalidAttributeError

ROOT_NAME = "tsduck"


def tables_to_xml(tables: Sequence[table.Table], context: Context) -> str:
    root = ET.Element(ROOT_NAME)
    for t in tables:
        t.to_xml(root, context)
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def tables_from_xml(text: str, context: Context) -> list[table.Table]:
    """Parse all the tables of an XML document, in document order."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise InvalidAttributeError(f"Invalid XML document: {e}") from e
    if root.tag != ROOT_NAME:
        raise InvalidAttributeError(f"Root element must be <{ROOT_NAME}>, found <{root.tag}>.")
    return [table.parse_xml(element, context) for element in root]
