"""Model classes for the DVB local time offset descriptor."""

from __future__ import annotations

import datetime
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import ClassVar

import ts_tools.si.time_util as time_util
import ts_tools.si.xml_util as xu
from ts_tools.si.standards import Context

from .base import Descriptor, DescriptorError, DescriptorTag
from .binary_types import _RegionBinaryFields

# Maximum number of regions in one descriptor: 19 * 13 bytes fit in the 255 byte payload.
MAX_REGIONS = 19
REGION_SIZE = 13


def format_time_offset(minutes: int) -> str:
    """Format a signed offset in minutes as [-]hh:mm."""
    hours, mins = divmod(abs(minutes), 60)
    return f"{'-' if minutes < 0 else ''}{hours:02}:{mins:02}"


# Local time description for one country or region of a country
# ETSI EN 300 468 Section 6.2.20 - Local time offset descriptor
# Important notes:
#  - The wire format holds one polarity bit for both offsets: they always have the same sign.
#  - Offsets are limited to 4 BCD digits (hhmm).
@dataclass(frozen=True, kw_only=True)
class Region:
    # ISO 3166 three letter country code, e.g. "FRA"
    country_code: str
    # Zone within the country; 0 means the whole country.
    region_id: int = 0
    # Current offset of the local time from UTC, in minutes.
    time_offset: int = 0
    # UTC date and time of the next change of local time offset (e.g. daylight saving switch).
    next_change: datetime.datetime
    # Offset from UTC that applies after next_change, in minutes.
    next_time_offset: int = 0

    @property
    def polarity(self) -> int:
        return 1 if self.time_offset < 0 or self.next_time_offset < 0 else 0

    def validate(self) -> str | None:
        try:
            country_code_size = len(self.country_code.encode("latin-1"))
        except UnicodeEncodeError:
            return "The country code must contain Latin-1 characters."
        if country_code_size != 3:
            return "The country code must have exactly 3 characters."
        # Control characters cannot be written to an XML attribute.
        if not self.country_code.isprintable():
            return "The country code must contain printable characters."
        if self.region_id < 0 or self.region_id > 0x3F:
            return "The country region ID is out of range."
        for offset in [self.time_offset, self.next_time_offset]:
            if abs(offset) > time_util.MAX_BCD_MINUTES:
                return "The local time offset is out of range."
        if (self.time_offset > 0 and self.next_time_offset < 0) or (
            self.time_offset < 0 and self.next_time_offset > 0
        ):
            return "The current and next local time offsets must have the same polarity."
        try:
            time_util.mjd_encode(self.next_change)
        except ValueError as e:
            return f"The time of change cannot be encoded: {e}"
        return None

    @classmethod
    def parse_binary(cls, region_bytes: bytes) -> Region:
        assert len(region_bytes) == REGION_SIZE
        bin = _RegionBinaryFields.from_buffer_copy(region_bytes)
        try:
            time_offset = time_util.parse_bcd_minutes(bin.local_time_offset)
            next_change = time_util.parse_mjd_binary(bin.time_of_change)
            next_time_offset = time_util.parse_bcd_minutes(bin.next_time_offset)
        except ValueError as e:
            raise DescriptorError(f"Invalid region in local time offset descriptor: {e}") from e
        sign = -1 if bin.local_time_offset_polarity else 1
        return cls(
            country_code=bytes(bin.country_code[:]).decode("latin-1"),
            region_id=bin.country_region_id,
            time_offset=sign * time_offset,
            next_change=next_change,
            next_time_offset=sign * next_time_offset,
        )

    def to_binary(self) -> bytes:
        struct = _RegionBinaryFields(
            country_region_id=self.region_id,
            reserved=0x1,
            local_time_offset_polarity=self.polarity,
            local_time_offset=time_util.bcd_minutes_fields(abs(self.time_offset)),
            time_of_change=time_util.mjd_binary_fields(self.next_change),
            next_time_offset=time_util.bcd_minutes_fields(abs(self.next_time_offset)),
        )
        struct.country_code[:] = list(self.country_code.encode("latin-1"))
        return bytes(struct)

    def to_xml(self, parent: ET.Element) -> ET.Element:
        element = ET.SubElement(parent, "region")
        element.set("country_code", self.country_code)
        xu.set_int_attribute(element, "country_region_id", self.region_id)
        xu.set_int_attribute(element, "local_time_offset", self.time_offset)
        xu.set_datetime_attribute(element, "time_of_change", self.next_change)
        xu.set_int_attribute(element, "next_time_offset", self.next_time_offset)
        return element

    @classmethod
    def parse_xml(cls, element: ET.Element) -> Region:
        return cls(
            country_code=xu.get_string_attribute(element, "country_code", required=True, length=3),
            region_id=xu.get_int_attribute(
                element, "country_region_id", required=True, max_value=0x3F
            ),
            time_offset=xu.get_int_attribute(
                element,
                "local_time_offset",
                required=True,
                min_value=-time_util.MAX_BCD_MINUTES,
                max_value=time_util.MAX_BCD_MINUTES,
            ),
            next_change=xu.get_datetime_attribute(element, "time_of_change"),
            next_time_offset=xu.get_int_attribute(
                element,
                "next_time_offset",
                required=True,
                min_value=-time_util.MAX_BCD_MINUTES,
                max_value=time_util.MAX_BCD_MINUTES,
            ),
        )


# Local time offset descriptor
# ETSI EN 300 468 Section 6.2.20 - Local time offset descriptor
# Only found in the TOT.  The TOT model flattens the regions of all its local time offset
# descriptors, so this class mostly appears as an intermediate representation.
@dataclass(frozen=True, kw_only=True)
class LocalTimeOffset(Descriptor):
    regions: list[Region] = field(default_factory=list)

    descriptor_tag: ClassVar[int] = DescriptorTag.LOCAL_TIME_OFFSET
    xml_name: ClassVar[str] = "local_time_offset_descriptor"

    def validate(self, context: Context) -> str | None:
        if len(self.regions) > MAX_REGIONS:
            return (
                f"Too many regions in a local time offset descriptor: at most {MAX_REGIONS} "
                f"are allowed but got {len(self.regions)}."
            )
        for index, region in enumerate(self.regions):
            region_message = region.validate()
            if region_message is not None:
                return f"Region {index}: {region_message}"
        return None

    @classmethod
    def _do_parse_binary(cls, payload: bytes, context: Context) -> LocalTimeOffset:
        if len(payload) % REGION_SIZE != 0:
            raise DescriptorError(
                f"Local time offset descriptor payload of {len(payload)} bytes is not a "
                f"multiple of {REGION_SIZE}."
            )
        return cls(
            regions=[
                Region.parse_binary(payload[offset : offset + REGION_SIZE])
                for offset in range(0, len(payload), REGION_SIZE)
            ]
        )

    def _do_to_binary(self, context: Context) -> bytes:
        return b"".join([region.to_binary() for region in self.regions])

    def _do_build_xml(self, element: ET.Element, context: Context) -> None:
        for region in self.regions:
            region.to_xml(element)

    @classmethod
    def _do_parse_xml(cls, element: ET.Element, context: Context) -> LocalTimeOffset:
        regions = []
        for child in element:
            if child.tag != "region":
                raise xu.InvalidAttributeError(
                    f"Unexpected <{child.tag}> in <{element.tag}>, expected <region>."
                )
            regions.append(Region.parse_xml(child))
        return cls(regions=regions)
