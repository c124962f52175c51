import xml.etree.ElementTree as ET

from ts_tools.si.standards import Context
from ts_tools.si.xml_util import InvalidAttributeError

from .base import Table, TableError, TableID
from .stt import STT
from .tot import TOT


def table_class(table_id: int) -> type[Table]:
    """Return the model class for a binary table ID."""
    match table_id:
        case TableID.TOT:
            return TOT
        case TableID.STT:
            return STT
        case _:
            raise TableError(f"Unsupported table ID {table_id:#04x}.")


def xml_table_class(name: str) -> type[Table]:
    """Return the model class for the name of an XML table element."""
    match name:
        case TOT.xml_name:
            return TOT
        case STT.xml_name:
            return STT
        case _:
            raise InvalidAttributeError(f"Unsupported table element <{name}>.")


def parse_binary(table_id: int, payload: bytes, context: Context) -> Table:
    """Create a new instance of a table by parsing a binary section payload.

    The output type will be one of the derived classes, based on the table ID found in the
    section header.
    """
    return table_class(table_id).parse_binary(payload, context)


def parse_xml(element: ET.Element, context: Context) -> Table:
    return xml_table_class(element.tag).parse_xml(element, context)
