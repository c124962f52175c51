"""Model class for the DVB Time Offset Table."""

from __future__ import annotations

import ctypes
import datetime
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import ClassVar, Sequence

import ts_tools.si.data_util as du
import ts_tools.si.descriptor as descriptor
import ts_tools.si.descriptor.descriptor_list as descriptor_list
import ts_tools.si.time_util as time_util
import ts_tools.si.xml_util as xu
from ts_tools.si.standards import Context, Standards

from .base import (
    MAX_SHORT_SECTION_PAYLOAD_SIZE,
    Table,
    TableError,
    TableID,
    TableValidationError,
    TruncatedError,
)
from .binary_types import _TOTBinaryFields

logger = logging.getLogger(__name__)

TIME_FIELD_SIZE = ctypes.sizeof(_TOTBinaryFields)


def is_local_time_offset(d: descriptor.Descriptor) -> bool:
    return d.tag == descriptor.DescriptorTag.LOCAL_TIME_OFFSET


def split_descriptors(
    descriptors: Sequence[descriptor.Descriptor], context: Context
) -> tuple[list[descriptor.Region], list[descriptor.Descriptor]]:
    """Separate the regions of local time offset descriptors from all other descriptors.

    Descriptors are told apart by their tag: a local time offset descriptor held in opaque form
    is decoded too, and raises a DescriptorError if it is malformed.  The regions of all local
    time offset descriptors are concatenated in their original order.  The original grouping of
    regions into descriptors is not kept.
    """
    region_lists = []
    for d in descriptors:
        if not is_local_time_offset(d):
            continue
        if not isinstance(d, descriptor.LocalTimeOffset):
            d = descriptor.LocalTimeOffset.parse_binary(d.to_binary(context), context)
            assert isinstance(d, descriptor.LocalTimeOffset)
        region_lists.append(d.regions)
    others = [d for d in descriptors if not is_local_time_offset(d)]
    return du.flatten(region_lists), others


# Time Offset Table
# Standards:
#  - ETSI EN 300 468 Section 5.2.6 - Time Offset Table (TOT)
#  - ETSI EN 300 468 Section 6.2.20 - Local time offset descriptor
#  - ARIB STD-B10 Part 2 Section 5.2.9 - Time Offset Table (Japan: the time field is JST)
# Important notes:
#  - The TOT is a short section, but unlike the TDT it ends with a CRC32.  The CRC32 is handled
#    by the section layer.
#  - Regions are kept as one flat list.  They are spread over as many local time offset
#    descriptors as needed when serializing, always before the other descriptors.
#  - The TOT fits in one section.  Descriptors that do not fit are dropped, as in the STT.
@dataclass(frozen=True, kw_only=True)
class TOT(Table):
    utc_time: datetime.datetime

    regions: list[descriptor.Region] = field(default_factory=list)

    # All descriptors except local time offset descriptors.
    other_descriptors: list[descriptor.Descriptor] = field(default_factory=list)

    table_id: ClassVar[TableID] = TableID.TOT
    standards: ClassVar[Standards] = Standards.DVB
    long_section: ClassVar[bool] = False
    max_payload_size: ClassVar[int] = MAX_SHORT_SECTION_PAYLOAD_SIZE
    xml_name: ClassVar[str] = "TOT"

    def local_time(self, region: descriptor.Region) -> datetime.datetime:
        """Local time in the given region, from the UTC time of the table."""
        return self.utc_time + datetime.timedelta(minutes=region.time_offset)

    def region_descriptors(self) -> list[descriptor.LocalTimeOffset]:
        """Group the regions into as few local time offset descriptors as possible."""
        return [
            descriptor.LocalTimeOffset(regions=regions)
            for regions in du.chunk(self.regions, descriptor.MAX_REGIONS)
        ]

    def all_descriptors(self) -> list[descriptor.Descriptor]:
        return [*self.region_descriptors(), *self.other_descriptors]

    def _wire_time(self, context: Context) -> datetime.datetime:
        # In Japan, the time field is in fact a JST time.
        return time_util.utc_to_jst(self.utc_time) if context.japan else self.utc_time

    def validate(self, context: Context) -> str | None:
        try:
            time_util.mjd_encode(self._wire_time(context))
        except ValueError as e:
            return f"The UTC time cannot be encoded: {e}"
        for index, region in enumerate(self.regions):
            region_message = region.validate()
            if region_message is not None:
                return f"Region {index}: {region_message}"
        if any(is_local_time_offset(d) for d in self.other_descriptors):
            return "Local time offset descriptors must be provided as regions."
        return None

    # Functions for going to/from binary

    @classmethod
    def _do_parse_binary(cls, payload: bytes, context: Context) -> tuple[TOT, int]:
        if len(payload) < TIME_FIELD_SIZE:
            raise TruncatedError(
                f"TOT payload is too short: expected at least {TIME_FIELD_SIZE} bytes for the "
                f"time field but got {len(payload)}."
            )
        if len(payload) < TIME_FIELD_SIZE + descriptor_list.LOOP_LENGTH_SIZE:
            raise TruncatedError("TOT payload is too short for the descriptor loop length.")
        bin = _TOTBinaryFields.from_buffer_copy(payload[:TIME_FIELD_SIZE])
        try:
            utc_time = time_util.parse_mjd_binary(bin.utc_time)
        except ValueError as e:
            raise TableError(f"Invalid TOT time field: {e}") from e
        if context.japan:
            utc_time = time_util.jst_to_utc(utc_time)

        descriptors, loop_size = descriptor_list.parse_list_with_length(
            payload[TIME_FIELD_SIZE:], context, cls.standards
        )
        regions, others = split_descriptors(descriptors, context)
        tot = cls(utc_time=utc_time, regions=regions, other_descriptors=others)
        return tot, TIME_FIELD_SIZE + loop_size

    def _do_to_binary(self, context: Context) -> bytes:
        return self._encode(context)[0]

    def to_binary_partial(self, context: Context) -> tuple[bytes, int]:
        """Convert this table to a payload; also returns the number of descriptors written.

        The count refers to the list returned by all_descriptors, where the regions are
        already grouped into local time offset descriptors.
        """
        validation_message = self.validate(context)
        if validation_message is not None:
            raise TableValidationError(validation_message)
        return self._encode(context)

    def _encode(self, context: Context) -> tuple[bytes, int]:
        struct = _TOTBinaryFields(utc_time=time_util.mjd_binary_fields(self._wire_time(context)))
        descriptors = self.all_descriptors()
        loop, count = descriptor_list.to_binary_partial_with_length(
            descriptors, context, self.max_payload_size - TIME_FIELD_SIZE
        )
        if count < len(descriptors):
            logger.warning(
                "TOT descriptor list does not fit in one section: dropped %d of %d descriptors.",
                len(descriptors) - count,
                len(descriptors),
            )
        return bytes(struct) + loop, count

    # Functions for going to/from XML

    def _do_build_xml(self, element: ET.Element, context: Context) -> None:
        # The XML always holds UTC, even in Japan.
        xu.set_datetime_attribute(element, "UTC_time", self.utc_time)
        descriptor_list.to_xml(element, self.all_descriptors(), context)

    @classmethod
    def _do_parse_xml(cls, element: ET.Element, context: Context) -> TOT:
        utc_time = xu.get_datetime_attribute(element, "UTC_time")
        try:
            regions, others = split_descriptors(
                descriptor_list.parse_xml(element, context, cls.standards), context
            )
        except descriptor.DescriptorError as e:
            raise xu.InvalidAttributeError(f"Invalid local time offset descriptor: {e}") from e
        return cls(utc_time=utc_time, regions=regions, other_descriptors=others)
