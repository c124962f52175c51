from typing import BinaryIO


def read_file_bytes(file: BinaryIO, size: int) -> bytes:
    """Read exactly size bytes, or fewer only when EOF is reached first."""

    rv = bytearray()
    while len(rv) < size:
        next_read = file.read(size - len(rv))
        if len(next_read) == 0:
            break
        rv += next_read

    return bytes(rv)
