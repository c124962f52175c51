import ctypes
from typing import ClassVar

from ts_tools.si.time_util import MJDBinaryFields


# ATSC A/65 Section 6.1 / Table 6.1 - Bit stream syntax for the System Time Table
# Only the fixed part of the payload, between the section header and the descriptor loop.
class _STTBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("protocol_version", ctypes.c_uint8),
        ("system_time", ctypes.c_uint32),
        ("gps_utc_offset", ctypes.c_uint8),
        ("ds_status", ctypes.c_uint8, 1),
        ("reserved", ctypes.c_uint8, 2),
        ("ds_day_of_month", ctypes.c_uint8, 5),
        ("ds_hour", ctypes.c_uint8),
    ]


# ETSI EN 300 468 Section 5.2.6 / Table 9 - Time offset section
# Only the time field: the descriptor loop length is read along with the loop itself.
class _TOTBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("utc_time", MJDBinaryFields),
    ]
