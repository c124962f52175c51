"""Model class for the ATSC System Time Table."""

from __future__ import annotations

import ctypes
import datetime
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import ClassVar

import ts_tools.si.descriptor as descriptor
import ts_tools.si.descriptor.descriptor_list as descriptor_list
import ts_tools.si.time_util as time_util
import ts_tools.si.xml_util as xu
from ts_tools.si.standards import Context, Standards

from .base import (
    MAX_LONG_SECTION_PAYLOAD_SIZE,
    Table,
    TableID,
    TableValidationError,
    TruncatedError,
)
from .binary_types import _STTBinaryFields

logger = logging.getLogger(__name__)

STT_HEADER_SIZE = ctypes.sizeof(_STTBinaryFields)


# System Time Table
# Standards:
#  - ATSC A/65:2013 Section 6.1 - System Time Table (STT)
#  - ATSC A/65:2013 Table 6.1 - Bit Stream Syntax for the System Time Table
#  - ATSC A/65:2013 Table 6.2 - Daylight Savings Time Control
# Important notes:
#  - An STT is not allowed to span more than one section.  Descriptors that would make the
#    payload overflow a single section are dropped from the end of the list when serializing.
#  - The table ID extension is always 0x0000, and the protocol version is currently always 0.
#    Other protocol versions are kept as-is so that they survive a round trip.
@dataclass(frozen=True, kw_only=True)
class STT(Table):
    protocol_version: int = 0

    # Current time as a count of GPS seconds since 1980-01-06T00:00:00Z; 0 means unset.
    system_time: int = 0

    # Current difference between GPS and UTC time, in whole seconds (leap seconds).
    gps_utc_offset: int = 0

    # Daylight saving time control
    # True when daylight saving time is in effect.
    dst_status: bool = False
    # Day of the month of the next transition into or out of daylight saving time; 0 means
    # that no transition is announced.
    dst_day_of_month: int = 0
    # Local hour of the next transition; formally 0-23, but any 8-bit value is carried.
    dst_hour: int = 0

    descriptors: list[descriptor.Descriptor] = field(default_factory=list)

    table_id: ClassVar[TableID] = TableID.STT
    standards: ClassVar[Standards] = Standards.ATSC
    long_section: ClassVar[bool] = True
    max_payload_size: ClassVar[int] = MAX_LONG_SECTION_PAYLOAD_SIZE
    xml_name: ClassVar[str] = "STT"

    @property
    def table_id_extension(self) -> int | None:
        return 0x0000

    @property
    def utc_time(self) -> datetime.datetime:
        """Current UTC time, or time_util.EPOCH when the system time is unset."""
        return time_util.gps_seconds_to_utc(self.system_time, self.gps_utc_offset)

    def validate(self, context: Context) -> str | None:
        if self.protocol_version < 0 or self.protocol_version > 0xFF:
            return "The protocol version is out of range."
        if self.system_time < 0 or self.system_time > 0xFFFFFFFF:
            return "The system time is out of range."
        if self.gps_utc_offset < 0 or self.gps_utc_offset > 0xFF:
            return "The GPS-UTC offset is out of range."
        if self.dst_day_of_month < 0 or self.dst_day_of_month > 31:
            return "The daylight saving time day of the month is out of range."
        if self.dst_hour < 0 or self.dst_hour > 0xFF:
            return "The daylight saving time hour is out of range."
        return None

    # Functions for going to/from binary

    @classmethod
    def _do_parse_binary(cls, payload: bytes, context: Context) -> tuple[STT, int]:
        if len(payload) < STT_HEADER_SIZE:
            raise TruncatedError(
                f"STT payload is too short: expected at least {STT_HEADER_SIZE} bytes "
                f"but got {len(payload)}."
            )
        bin = _STTBinaryFields.from_buffer_copy(payload[:STT_HEADER_SIZE])
        # The reserved bits are ignored, whatever their value.
        stt = cls(
            protocol_version=bin.protocol_version,
            system_time=bin.system_time,
            gps_utc_offset=bin.gps_utc_offset,
            dst_status=bin.ds_status == 1,
            dst_day_of_month=bin.ds_day_of_month,
            dst_hour=bin.ds_hour,
            # The descriptor loop runs until the end of the section.
            descriptors=descriptor_list.parse_list(
                payload[STT_HEADER_SIZE:], context, cls.standards
            ),
        )
        return stt, len(payload)

    def _do_to_binary(self, context: Context) -> bytes:
        return self._encode(context)[0]

    def to_binary_partial(self, context: Context) -> tuple[bytes, int]:
        """Convert this table to a payload; also returns the number of descriptors written."""
        validation_message = self.validate(context)
        if validation_message is not None:
            raise TableValidationError(validation_message)
        return self._encode(context)

    def _encode(self, context: Context) -> tuple[bytes, int]:
        struct = _STTBinaryFields(
            protocol_version=self.protocol_version,
            system_time=self.system_time,
            gps_utc_offset=self.gps_utc_offset,
            ds_status=1 if self.dst_status else 0,
            reserved=0x3,
            ds_day_of_month=self.dst_day_of_month,
            ds_hour=self.dst_hour,
        )
        descs, count = descriptor_list.to_binary_partial(
            self.descriptors, context, self.max_payload_size - STT_HEADER_SIZE
        )
        if count < len(self.descriptors):
            logger.warning(
                "STT descriptor list does not fit in one section: dropped %d of %d descriptors.",
                len(self.descriptors) - count,
                len(self.descriptors),
            )
        return bytes(struct) + descs, count

    # Functions for going to/from XML

    def _do_build_xml(self, element: ET.Element, context: Context) -> None:
        xu.set_int_attribute(element, "protocol_version", self.protocol_version)
        xu.set_int_attribute(element, "system_time", self.system_time)
        xu.set_int_attribute(element, "GPS_UTC_offset", self.gps_utc_offset)
        xu.set_bool_attribute(element, "DS_status", self.dst_status)
        if self.dst_day_of_month > 0:
            xu.set_int_attribute(element, "DS_day_of_month", self.dst_day_of_month & 0x1F)
        if self.dst_day_of_month > 0 or self.dst_hour > 0:
            xu.set_int_attribute(element, "DS_hour", self.dst_hour)
        descriptor_list.to_xml(element, self.descriptors, context)

    @classmethod
    def _do_parse_xml(cls, element: ET.Element, context: Context) -> STT:
        return cls(
            protocol_version=xu.get_int_attribute(
                element, "protocol_version", required=False, max_value=0xFF
            ),
            system_time=xu.get_int_attribute(
                element, "system_time", required=True, max_value=0xFFFFFFFF
            ),
            gps_utc_offset=xu.get_int_attribute(
                element, "GPS_UTC_offset", required=True, max_value=0xFF
            ),
            dst_status=xu.get_bool_attribute(element, "DS_status", required=True),
            dst_day_of_month=xu.get_int_attribute(
                element, "DS_day_of_month", required=False, max_value=31
            ),
            dst_hour=xu.get_int_attribute(element, "DS_hour", required=False, max_value=23),
            descriptors=descriptor_list.parse_xml(element, context, cls.standards),
        )
