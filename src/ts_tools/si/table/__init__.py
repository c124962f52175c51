"""Contains model classes for tables carried in PSI/SI sections."""

from .base import (
    MAX_LONG_SECTION_PAYLOAD_SIZE,
    MAX_SECTION_SIZE,
    MAX_SHORT_SECTION_PAYLOAD_SIZE,
    Table,
    TableError,
    TableID,
    TableValidationError,
    TruncatedError,
)
from .parser import parse_binary, parse_xml, table_class, xml_table_class
from .stt import STT
from .tot import TOT, split_descriptors

__all__ = [
    "MAX_LONG_SECTION_PAYLOAD_SIZE",
    "MAX_SECTION_SIZE",
    "MAX_SHORT_SECTION_PAYLOAD_SIZE",
    "parse_binary",
    "parse_xml",
    "split_descriptors",
    "STT",
    "Table",
    "table_class",
    "TableError",
    "TableID",
    "TableValidationError",
    "TOT",
    "TruncatedError",
    "xml_table_class",
]
