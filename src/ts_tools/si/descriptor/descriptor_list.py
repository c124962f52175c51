"""Functions for reading and writing lists of descriptors, as found in table payloads."""

import ctypes
import xml.etree.ElementTree as ET
from typing import Sequence

from ts_tools.si.standards import Context, Standards

from . import parser
from .base import (
    HEADER_SIZE,
    CapacityExceededError,
    Descriptor,
    DescriptorOverrunError,
)
from .binary_types import _LoopLengthBinaryFields

LOOP_LENGTH_SIZE = ctypes.sizeof(_LoopLengthBinaryFields)
MAX_LOOP_LENGTH = 0xFFF


# ======================== BINARY ========================


def parse_list(data: bytes, context: Context, standards: Standards) -> list[Descriptor]:
    """Parse consecutive descriptors until all the data is consumed."""
    descriptors = []
    offset = 0
    while offset < len(data):
        if len(data) - offset < HEADER_SIZE:
            raise DescriptorOverrunError(
                f"Truncated descriptor header at offset {offset} of the descriptor list."
            )
        end = offset + HEADER_SIZE + data[offset + 1]
        if end > len(data):
            raise DescriptorOverrunError(
                f"Descriptor with tag {data[offset]:#04x} declares {data[offset + 1]} bytes but "
                f"only {len(data) - offset - HEADER_SIZE} remain."
            )
        descriptors.append(parser.parse_binary(data[offset:end], context, standards))
        offset = end
    return descriptors


def to_binary(descriptors: Sequence[Descriptor], context: Context) -> bytes:
    return b"".join([d.to_binary(context) for d in descriptors])


def to_binary_partial(
    descriptors: Sequence[Descriptor], context: Context, capacity: int
) -> tuple[bytes, int]:
    """Serialize as many descriptors as fit in capacity bytes.

    Serialization stops at the first descriptor that does not entirely fit; the descriptors
    after it are not written either.  Returns the binary data and the number of descriptors
    that were written.
    """
    result = bytearray()
    count = 0
    for d in descriptors:
        b = d.to_binary(context)
        if len(result) + len(b) > capacity:
            break
        result += b
        count += 1
    return bytes(result), count


# Descriptor loops preceded by their own 12-bit length


def parse_list_with_length(
    data: bytes, context: Context, standards: Standards
) -> tuple[list[Descriptor], int]:
    """Parse a length-prefixed descriptor loop at the start of data.

    Returns the descriptors and the number of bytes consumed, including the length prefix.
    Any bytes after the loop are left alone.
    """
    if len(data) < LOOP_LENGTH_SIZE:
        raise DescriptorOverrunError("Truncated descriptor loop length.")
    bin = _LoopLengthBinaryFields.from_buffer_copy(data[:LOOP_LENGTH_SIZE])
    end = LOOP_LENGTH_SIZE + bin.loop_length
    if end > len(data):
        raise DescriptorOverrunError(
            f"Descriptor loop declares {bin.loop_length} bytes but only "
            f"{len(data) - LOOP_LENGTH_SIZE} remain."
        )
    return parse_list(data[LOOP_LENGTH_SIZE:end], context, standards), end


def to_binary_with_length(descriptors: Sequence[Descriptor], context: Context) -> bytes:
    loop = to_binary(descriptors, context)
    if len(loop) > MAX_LOOP_LENGTH:
        raise CapacityExceededError(
            f"Descriptor loop of {len(loop)} bytes does not fit in a 12-bit length field."
        )
    return _loop_length(loop) + loop


def to_binary_partial_with_length(
    descriptors: Sequence[Descriptor], context: Context, capacity: int
) -> tuple[bytes, int]:
    """Serialize a length-prefixed loop with as many descriptors as fit in capacity bytes.

    The capacity includes the length prefix.  Like to_binary_partial, serialization stops at the
    first descriptor that does not entirely fit.  Returns the binary data and the number of
    descriptors that were written.
    """
    assert capacity >= LOOP_LENGTH_SIZE
    loop, count = to_binary_partial(
        descriptors, context, min(capacity - LOOP_LENGTH_SIZE, MAX_LOOP_LENGTH)
    )
    return _loop_length(loop) + loop, count


def _loop_length(loop: bytes) -> bytes:
    return bytes(_LoopLengthBinaryFields(reserved=0xF, loop_length=len(loop)))


# ======================== XML ========================


def to_xml(parent: ET.Element, descriptors: Sequence[Descriptor], context: Context) -> None:
    for d in descriptors:
        d.to_xml(parent, context)


def parse_xml(element: ET.Element, context: Context, standards: Standards) -> list[Descriptor]:
    """Parse all child elements of a table element as descriptors."""
    return [parser.parse_xml(child, context, standards) for child in element]
