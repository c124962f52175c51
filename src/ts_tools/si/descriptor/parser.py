import xml.etree.ElementTree as ET

from ts_tools.si.standards import Context, Standards
from ts_tools.si.xml_util import InvalidAttributeError

from .base import Descriptor, DescriptorTag
from .local_time_offset import LocalTimeOffset
from .misc import Unknown


def parse_binary(descriptor_bytes: bytes, context: Context, standards: Standards) -> Descriptor:
    """Create a new instance of a descriptor by parsing one complete binary descriptor.

    The standards are those of the enclosing table: they decide how the tag is interpreted.
    Descriptors without a model for these standards are returned as Unknown.
    """
    match descriptor_bytes[0]:
        case DescriptorTag.LOCAL_TIME_OFFSET if standards & Standards.DVB:
            return LocalTimeOffset.parse_binary(descriptor_bytes, context)
        case _:
            return Unknown.parse_binary(descriptor_bytes, context)


def parse_xml(element: ET.Element, context: Context, standards: Standards) -> Descriptor:
    """Create a new instance of a descriptor from its XML element."""
    match element.tag:
        case LocalTimeOffset.xml_name if standards & Standards.DVB:
            return LocalTimeOffset.parse_xml(element, context)
        case Unknown.xml_name:
            return Unknown.parse_xml(element, context)
        case _:
            raise InvalidAttributeError(f"Unsupported descriptor <{element.tag}>.")
