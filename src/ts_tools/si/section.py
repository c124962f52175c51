"""Framing of table payloads into complete PSI/SI sections, with their header and CRC32."""

import ctypes
import logging
from typing import ClassVar

import ts_tools.si.table as table
from ts_tools.si.standards import Context

logger = logging.getLogger(__name__)


class SectionError(ValueError):
    pass


# ISO/IEC 13818-1 Section 2.4.4.10 - Syntax of the private section
# Common 3-byte header of all sections.
class _ShortHeaderBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("table_id", ctypes.c_uint8),
        ("section_syntax_indicator", ctypes.c_uint16, 1),
        ("private_indicator", ctypes.c_uint16, 1),
        ("reserved", ctypes.c_uint16, 2),
        ("section_length", ctypes.c_uint16, 12),
    ]


# Extension of the header found in long sections (section_syntax_indicator == 1).
class _LongHeaderBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("short", _ShortHeaderBinaryFields),
        ("table_id_extension", ctypes.c_uint16),
        ("reserved", ctypes.c_uint8, 2),
        ("version_number", ctypes.c_uint8, 5),
        ("current_next_indicator", ctypes.c_uint8, 1),
        ("section_number", ctypes.c_uint8),
        ("last_section_number", ctypes.c_uint8),
    ]


assert ctypes.sizeof(_ShortHeaderBinaryFields) == table.base.SHORT_SECTION_HEADER_SIZE
assert ctypes.sizeof(_LongHeaderBinaryFields) == table.base.LONG_SECTION_HEADER_SIZE

MAX_VERSION = 0x1F


# ======================== CRC32 ========================


def _crc32_table() -> list[int]:
    crc_table = []
    for i in range(256):
        crc = i << 24
        for _ in range(8):
            crc = ((crc << 1) ^ 0x04C11DB7) if crc & 0x80000000 else (crc << 1)
        crc_table.append(crc & 0xFFFFFFFF)
    return crc_table


_CRC32_TABLE = _crc32_table()


def crc32_mpeg2(data: bytes) -> int:
    """CRC32 of the MPEG-2 sections: polynomial 0x04C11DB7, not reflected, no final XOR.

    The CRC32 of a complete section, including its own CRC32 field, is 0.
    """
    crc = 0xFFFFFFFF
    for b in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC32_TABLE[(crc >> 24) ^ b]
    return crc


# ======================== SECTIONS ========================


def build_section(t: table.Table, context: Context, version: int = 0) -> bytes:
    """Serialize a table into one complete section, ending with its CRC32."""
    assert version >= 0 and version <= MAX_VERSION
    payload = t.to_binary(context)
    if t.long_section:
        header_size = table.base.LONG_SECTION_HEADER_SIZE
    else:
        header_size = table.base.SHORT_SECTION_HEADER_SIZE
    # The section length counts all bytes after the length field, including the CRC32.
    section_length = (
        header_size - table.base.SHORT_SECTION_HEADER_SIZE
        + len(payload)
        + table.base.SECTION_CRC32_SIZE
    )
    short = _ShortHeaderBinaryFields(
        table_id=t.table_id,
        section_syntax_indicator=1 if t.long_section else 0,
        private_indicator=1,
        reserved=0x3,
        section_length=section_length,
    )
    if t.long_section:
        extension = t.table_id_extension
        assert extension is not None
        header = bytes(
            _LongHeaderBinaryFields(
                short=short,
                table_id_extension=extension,
                reserved=0x3,
                version_number=version,
                current_next_indicator=1,
                section_number=0,
                last_section_number=0,
            )
        )
    else:
        header = bytes(short)
    section = header + payload
    section += crc32_mpeg2(section).to_bytes(table.base.SECTION_CRC32_SIZE, byteorder="big")
    assert len(section) <= table.MAX_SECTION_SIZE
    return section


def section_size(data: bytes) -> int:
    """Total size of the section at the start of data, read from its header."""
    if len(data) < table.base.SHORT_SECTION_HEADER_SIZE:
        raise SectionError("Truncated section header.")
    short = _ShortHeaderBinaryFields.from_buffer_copy(
        data[: table.base.SHORT_SECTION_HEADER_SIZE]
    )
    return table.base.SHORT_SECTION_HEADER_SIZE + int(short.section_length)


def parse_section(section_bytes: bytes, context: Context) -> table.Table:
    """Check one complete section and decode the table it carries.

    Only single-section tables are supported: a long section must be section 0 of 0.
    """
    size = section_size(section_bytes)
    if size != len(section_bytes):
        raise SectionError(
            f"Section length field indicates {size} bytes but the section has "
            f"{len(section_bytes)} bytes."
        )
    if size > table.MAX_SECTION_SIZE:
        raise SectionError(f"Section of {size} bytes exceeds the maximum section size.")
    short = _ShortHeaderBinaryFields.from_buffer_copy(
        section_bytes[: table.base.SHORT_SECTION_HEADER_SIZE]
    )
    table_class = table.table_class(short.table_id)
    is_long = short.section_syntax_indicator == 1
    if is_long != table_class.long_section:
        raise SectionError(
            f"Unexpected section syntax indicator for table ID {short.table_id:#04x}."
        )
    header_size = (
        table.base.LONG_SECTION_HEADER_SIZE if is_long else table.base.SHORT_SECTION_HEADER_SIZE
    )
    if size < header_size + table.base.SECTION_CRC32_SIZE:
        raise SectionError("Section is too short for its header and CRC32.")
    if crc32_mpeg2(section_bytes) != 0:
        raise SectionError(f"Invalid CRC32 in section with table ID {short.table_id:#04x}.")
    if is_long:
        long = _LongHeaderBinaryFields.from_buffer_copy(section_bytes[:header_size])
        if long.section_number != 0 or long.last_section_number != 0:
            raise SectionError("Tables spanning more than one section are not supported.")
        if long.current_next_indicator == 0:
            logger.debug("Section with table ID %#04x is not yet applicable.", short.table_id)

    payload = section_bytes[header_size : size - table.base.SECTION_CRC32_SIZE]
    t, consumed = table_class.parse_binary_prefix(payload, context)
    if consumed != len(payload):
        raise SectionError(
            f"{len(payload) - consumed} unexpected bytes after the {table_class.xml_name} "
            "payload."
        )
    return t
