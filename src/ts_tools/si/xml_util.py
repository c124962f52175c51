"""Typed access to the attributes of XML elements describing tables and descriptors."""

import datetime
import xml.etree.ElementTree as ET

import ts_tools.si.data_util as du
import ts_tools.si.time_util as time_util


class InvalidAttributeError(ValueError):
    pass


def _missing(element: ET.Element, name: str) -> InvalidAttributeError:
    return InvalidAttributeError(f"Missing attribute {name} in <{element.tag}>.")


def get_int_attribute(
    element: ET.Element,
    name: str,
    *,
    required: bool,
    max_value: int,
    min_value: int = 0,
    default: int = 0,
) -> int:
    """Read an integer attribute, in decimal or with a 0x prefix for hexadecimal."""
    text_value = element.get(name)
    if text_value is None:
        if required:
            raise _missing(element, name)
        return default
    digits = text_value.strip()
    try:
        if digits.lower().startswith("0x"):
            value = int(digits[2:], 16)
        else:
            value = int(digits, 10)
    except ValueError as e:
        raise InvalidAttributeError(
            f"Attribute {name} in <{element.tag}> is not an integer: '{text_value}'."
        ) from e
    if value < min_value or value > max_value:
        raise InvalidAttributeError(
            f"Attribute {name} in <{element.tag}> must be in range {min_value} to {max_value}, "
            f"got {value}."
        )
    return value


def get_bool_attribute(
    element: ET.Element, name: str, *, required: bool, default: bool = False
) -> bool:
    text_value = element.get(name)
    if text_value is None:
        if required:
            raise _missing(element, name)
        return default
    try:
        return du.parse_bool(text_value.strip())
    except ValueError as e:
        raise InvalidAttributeError(
            f"Attribute {name} in <{element.tag}> is not a boolean: '{text_value}'."
        ) from e


def get_string_attribute(
    element: ET.Element,
    name: str,
    *,
    required: bool,
    default: str = "",
    length: int | None = None,
) -> str:
    text_value = element.get(name)
    if text_value is None:
        if required:
            raise _missing(element, name)
        return default
    if length is not None and len(text_value) != length:
        raise InvalidAttributeError(
            f"Attribute {name} in <{element.tag}> must have exactly {length} characters."
        )
    return text_value


def get_datetime_attribute(element: ET.Element, name: str) -> datetime.datetime:
    """Read a required date and time attribute, formatted as YYYY-MM-DD hh:mm:ss."""
    text_value = element.get(name)
    if text_value is None:
        raise _missing(element, name)
    try:
        return time_util.parse_datetime(text_value)
    except ValueError as e:
        raise InvalidAttributeError(
            f"Attribute {name} in <{element.tag}> is not a valid date and time: '{text_value}'."
        ) from e


def get_hex_text(element: ET.Element) -> bytes:
    """Read the hexadecimal content of an element; whitespace is ignored."""
    try:
        return du.parse_hex_bytes(element.text or "")
    except ValueError as e:
        raise InvalidAttributeError(f"Invalid hexadecimal content in <{element.tag}>.") from e


def set_int_attribute(element: ET.Element, name: str, value: int, hex_digits: int = 0) -> None:
    element.set(name, du.hex_int(value, hex_digits) if hex_digits else str(value))


def set_bool_attribute(element: ET.Element, name: str, value: bool) -> None:
    element.set(name, du.format_bool(value))


def set_datetime_attribute(element: ET.Element, name: str, value: datetime.datetime) -> None:
    element.set(name, time_util.format_datetime(value))


def set_hex_text(element: ET.Element, value: bytes) -> None:
    element.text = du.hex_bytes(value, separator=" ")
