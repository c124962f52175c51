"""Base classes for defining descriptors."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

from ts_tools.si.standards import Context
from ts_tools.si.xml_util import InvalidAttributeError


class DescriptorError(ValueError):
    pass


class DescriptorOverrunError(DescriptorError):
    pass


class CapacityExceededError(DescriptorError):
    pass


class DescriptorValidationError(DescriptorError):
    pass


# Every descriptor starts with a one byte tag and a one byte payload length.
HEADER_SIZE = 2
MAX_PAYLOAD_SIZE = 0xFF


# Descriptor tags that have a dedicated model class.  Tag values are not unique across
# standards, so a tag is only interpreted in the context of the standard of the enclosing table.
class DescriptorTag(IntEnum):
    # ETSI EN 300 468 Section 6.2.20 - Local time offset descriptor (DVB)
    LOCAL_TIME_OFFSET = 0x58


@dataclass(frozen=True, kw_only=True)
class Descriptor(ABC):
    @abstractmethod
    def validate(self, context: Context) -> str | None:
        """Indicate whether the contents of the descriptor are fully valid.

        A fully valid descriptor can be safely serialized to binary.  The return value contains
        a description of the validation failure.  If the descriptor passes validation, then
        None is returned.
        """
        pass

    # Binary byte value for the descriptor tag.
    descriptor_tag: ClassVar[int]

    @property
    def tag(self) -> int:
        return self.descriptor_tag

    # Functions for going to/from binary descriptors

    @classmethod
    @abstractmethod
    def _do_parse_binary(cls, payload: bytes, context: Context) -> Descriptor:
        """The derived class should parse the payload bytes into a new Descriptor object.

        The payload excludes the tag and length bytes.  Malformed payloads must raise a
        DescriptorError.  The main parse_binary function validates the result.
        """

    @classmethod
    def parse_binary(cls, descriptor_bytes: bytes, context: Context) -> Descriptor:
        """Create a new instance of the descriptor by parsing a complete binary descriptor.

        The input bytes are expected to hold exactly one descriptor, including its header.
        """
        assert len(descriptor_bytes) >= HEADER_SIZE
        assert descriptor_bytes[0] == cls.descriptor_tag
        assert descriptor_bytes[1] == len(descriptor_bytes) - HEADER_SIZE
        desc = cls._do_parse_binary(descriptor_bytes[HEADER_SIZE:], context)
        validation_message = desc.validate(context)
        if validation_message is not None:
            raise DescriptorError(validation_message)
        return desc

    @abstractmethod
    def _do_to_binary(self, context: Context) -> bytes:
        """Convert this descriptor payload to binary; the descriptor can be assumed to be valid."""
        pass

    def to_binary(self, context: Context) -> bytes:
        """Convert this descriptor to binary, including the tag and length bytes."""
        validation_message = self.validate(context)
        if validation_message is not None:
            raise DescriptorValidationError(validation_message)
        payload = self._do_to_binary(context)
        assert len(payload) <= MAX_PAYLOAD_SIZE
        return bytes([self.tag, len(payload), *payload])

    # Functions for going to/from XML elements

    # Name of the XML element holding the descriptor.
    xml_name: ClassVar[str]

    @abstractmethod
    def _do_build_xml(self, element: ET.Element, context: Context) -> None:
        """Fill the attributes and children of the XML element for this descriptor."""
        pass

    def to_xml(self, parent: ET.Element, context: Context) -> ET.Element:
        element = ET.SubElement(parent, self.xml_name)
        self._do_build_xml(element, context)
        return element

    @classmethod
    @abstractmethod
    def _do_parse_xml(cls, element: ET.Element, context: Context) -> Descriptor:
        """Create a new descriptor from an XML element; errors raise InvalidAttributeError."""

    @classmethod
    def parse_xml(cls, element: ET.Element, context: Context) -> Descriptor:
        assert element.tag == cls.xml_name
        desc = cls._do_parse_xml(element, context)
        validation_message = desc.validate(context)
        if validation_message is not None:
            raise InvalidAttributeError(f"Invalid <{element.tag}>: {validation_message}")
        return desc
