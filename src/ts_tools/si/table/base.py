"""Base classes for defining tables carried in sections."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

from ts_tools.si.standards import Context, Standards
from ts_tools.si.xml_util import InvalidAttributeError


class TableError(ValueError):
    pass


class TruncatedError(TableError):
    pass


class TableValidationError(TableError):
    pass


# Section size limits
# ISO/IEC 13818-1 Section 2.4.4.11 - Private section (PSI and SI limit of 1024 bytes)
MAX_SECTION_SIZE = 1024
SHORT_SECTION_HEADER_SIZE = 3
LONG_SECTION_HEADER_SIZE = 8
SECTION_CRC32_SIZE = 4
MAX_LONG_SECTION_PAYLOAD_SIZE = MAX_SECTION_SIZE - LONG_SECTION_HEADER_SIZE - SECTION_CRC32_SIZE
MAX_SHORT_SECTION_PAYLOAD_SIZE = MAX_SECTION_SIZE - SHORT_SECTION_HEADER_SIZE - SECTION_CRC32_SIZE


# Table IDs
class TableID(IntEnum):
    # ETSI EN 300 468 Section 5.2.6 - Time Offset Table (TOT)
    TOT = 0x73

    # ATSC A/65 Section 6.1 - System Time Table (STT)
    STT = 0xCD


@dataclass(frozen=True, kw_only=True)
class Table(ABC):
    @abstractmethod
    def validate(self, context: Context) -> str | None:
        """Indicate whether the contents of the table are fully valid.

        A fully valid table can be safely serialized to a binary section payload.  The return
        value contains a description of the validation failure.  If the table passes
        validation, then None is returned.
        """
        pass

    # Binary byte value for the table ID in the section header.
    table_id: ClassVar[TableID]

    # Standards the table belongs to.  Descriptors in the table are interpreted accordingly.
    standards: ClassVar[Standards]

    # Long sections carry a table ID extension, version and section numbers.
    long_section: ClassVar[bool]

    # Largest payload that fits in one section of this table.
    max_payload_size: ClassVar[int]

    @property
    def table_id_extension(self) -> int | None:
        """Value of the table ID extension field in long sections; None for short sections."""
        return None

    # Functions for going to/from binary section payloads

    @classmethod
    @abstractmethod
    def _do_parse_binary(cls, payload: bytes, context: Context) -> tuple[Table, int]:
        """The derived class should parse the payload bytes into a new Table object.

        Returns the table along with the number of payload bytes that were consumed.  Errors
        in the payload must raise a TableError or DescriptorError.
        """

    @classmethod
    def parse_binary_prefix(cls, payload: bytes, context: Context) -> tuple[Table, int]:
        """Parse a section payload, also returning how many bytes were consumed.

        Bytes left after the table are not an error here: it is up to the section layer to
        decide what to do with them.
        """
        table, size = cls._do_parse_binary(payload, context)
        assert size <= len(payload)
        validation_message = table.validate(context)
        if validation_message is not None:
            raise TableError(validation_message)
        return table, size

    @classmethod
    def parse_binary(cls, payload: bytes, context: Context) -> Table:
        """Create a new instance of the table by parsing a section payload."""
        return cls.parse_binary_prefix(payload, context)[0]

    @abstractmethod
    def _do_to_binary(self, context: Context) -> bytes:
        """Convert this table to a payload; the table can be assumed to be valid."""
        pass

    def to_binary(self, context: Context) -> bytes:
        """Convert this table to a binary section payload."""
        validation_message = self.validate(context)
        if validation_message is not None:
            raise TableValidationError(validation_message)
        b = self._do_to_binary(context)
        assert len(b) <= self.max_payload_size
        return b

    # Functions for going to/from XML elements

    # Name of the XML element holding the table.
    xml_name: ClassVar[str]

    @abstractmethod
    def _do_build_xml(self, element: ET.Element, context: Context) -> None:
        """Fill the attributes and children of the XML element for this table."""
        pass

    def to_xml(self, parent: ET.Element, context: Context) -> ET.Element:
        element = ET.SubElement(parent, self.xml_name)
        self._do_build_xml(element, context)
        return element

    @classmethod
    @abstractmethod
    def _do_parse_xml(cls, element: ET.Element, context: Context) -> Table:
        """Create a new table from an XML element; errors raise InvalidAttributeError."""

    @classmethod
    def parse_xml(cls, element: ET.Element, context: Context) -> Table:
        assert element.tag == cls.xml_name
        table = cls._do_parse_xml(element, context)
        validation_message = table.validate(context)
        if validation_message is not None:
            raise InvalidAttributeError(f"Invalid <{element.tag}>: {validation_message}")
        return table
