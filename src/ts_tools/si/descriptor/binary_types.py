import ctypes
from typing import ClassVar

from ts_tools.si.time_util import BCDMinutesBinaryFields, MJDBinaryFields


# One region entry of a local time offset descriptor
# ETSI EN 300 468 Section 6.2.20 / Table 65 - Local time offset descriptor
class _RegionBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("country_code", ctypes.c_uint8 * 3),
        ("country_region_id", ctypes.c_uint8, 6),
        ("reserved", ctypes.c_uint8, 1),
        ("local_time_offset_polarity", ctypes.c_uint8, 1),
        ("local_time_offset", BCDMinutesBinaryFields),
        ("time_of_change", MJDBinaryFields),
        ("next_time_offset", BCDMinutesBinaryFields),
    ]


# Length prefix in front of a descriptor loop: 4 reserved bits, then 12 bits of byte length
class _LoopLengthBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("reserved", ctypes.c_uint16, 4),
        ("loop_length", ctypes.c_uint16, 12),
    ]
