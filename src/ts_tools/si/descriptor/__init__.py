"""Contains model classes for descriptors carried in table payloads."""

from .base import (
    CapacityExceededError,
    Descriptor,
    DescriptorError,
    DescriptorOverrunError,
    DescriptorTag,
    DescriptorValidationError,
)
from .local_time_offset import (
    MAX_REGIONS,
    LocalTimeOffset,
    Region,
    format_time_offset,
)
from .misc import Unknown
from .parser import parse_binary, parse_xml

__all__ = [
    "CapacityExceededError",
    "Descriptor",
    "DescriptorError",
    "DescriptorOverrunError",
    "DescriptorTag",
    "DescriptorValidationError",
    "format_time_offset",
    "LocalTimeOffset",
    "MAX_REGIONS",
    "parse_binary",
    "parse_xml",
    "Region",
    "Unknown",
]
