from typing import Iterable, Sequence, TypeVar

T = TypeVar("T")


def hex_int(int_value: int, digits: int, skip_prefix: bool = False) -> str:
    return f"0x{int_value:0{digits}X}" if not skip_prefix else f"{int_value:0{digits}X}"


def hex_bytes(bytes_value: bytes, separator: str = "") -> str:
    return separator.join([hex_int(b, 2, skip_prefix=True) for b in bytes_value])


def parse_hex_bytes(text_value: str) -> bytes:
    """Parse hexadecimal digits into bytes, ignoring any whitespace between the digits."""
    return bytes.fromhex("".join(text_value.split()))


def parse_bool(text_value: str) -> bool:
    if text_value.upper() in ["TRUE", "YES", "1"]:
        return True
    elif text_value.upper() in ["FALSE", "NO", "0"]:
        return False
    raise ValueError("Invalid boolean format.")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


# Splitting a list of items into fixed-capacity sub-records, and merging them back.  Chunk
# boundaries carry no meaning: flatten(chunk(items, n)) == items for any n > 0.


def chunk(items: Sequence[T], max_size: int) -> list[list[T]]:
    """Split items into consecutive chunks holding at most max_size items each.

    An empty input yields no chunks at all.  Only the last chunk may be smaller than max_size.
    """
    assert max_size > 0
    return [list(items[i : i + max_size]) for i in range(0, len(items), max_size)]


def flatten(chunks: Iterable[Iterable[T]]) -> list[T]:
    """Concatenate chunks back into a single list, preserving order."""
    return [item for c in chunks for item in c]
