"""Model classes for descriptors without a dedicated model."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import ClassVar

import ts_tools.si.xml_util as xu
from ts_tools.si.standards import Context

from .base import HEADER_SIZE, MAX_PAYLOAD_SIZE, Descriptor, DescriptorValidationError


# Unknown descriptor: holds the bytes for any descriptor tag we don't have a model for, or that
# is not meaningful in the standard of the enclosing table.  The bytes are kept as-is so that
# the descriptor survives a round trip through binary or XML unchanged.
@dataclass(frozen=True, kw_only=True)
class Unknown(Descriptor):
    # complete descriptor: includes the tag and length bytes
    value: bytes

    xml_name: ClassVar[str] = "generic_descriptor"

    @property
    def tag(self) -> int:
        return self.value[0]

    @property
    def payload(self) -> bytes:
        return self.value[HEADER_SIZE:]

    @classmethod
    def from_payload(cls, tag: int, payload: bytes) -> Unknown:
        assert tag >= 0 and tag <= 0xFF
        return cls(value=bytes([tag, len(payload) & 0xFF, *payload]))

    def validate(self, context: Context) -> str | None:
        if len(self.value) < HEADER_SIZE:
            return "A descriptor must contain at least a tag and a length."
        if len(self.value) - HEADER_SIZE > MAX_PAYLOAD_SIZE:
            return f"The descriptor payload is larger than {MAX_PAYLOAD_SIZE} bytes."
        if self.value[1] != len(self.value) - HEADER_SIZE:
            return "The descriptor length byte does not match the payload size."
        return None

    @classmethod
    def _do_parse_binary(cls, payload: bytes, context: Context) -> Unknown:
        assert False

    @classmethod
    def parse_binary(cls, descriptor_bytes: bytes, context: Context) -> Descriptor:
        assert len(descriptor_bytes) >= HEADER_SIZE
        return cls(value=bytes(descriptor_bytes))

    def _do_to_binary(self, context: Context) -> bytes:
        return self.payload

    def to_binary(self, context: Context) -> bytes:
        validation_message = self.validate(context)
        if validation_message is not None:
            raise DescriptorValidationError(validation_message)
        return self.value

    def _do_build_xml(self, element: ET.Element, context: Context) -> None:
        xu.set_int_attribute(element, "tag", self.tag, hex_digits=2)
        xu.set_hex_text(element, self.payload)

    @classmethod
    def _do_parse_xml(cls, element: ET.Element, context: Context) -> Unknown:
        return cls.from_payload(
            xu.get_int_attribute(element, "tag", required=True, max_value=0xFF),
            xu.get_hex_text(element),
        )
