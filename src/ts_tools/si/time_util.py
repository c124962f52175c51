"""Conversions between the wire time encodings of the tables and datetime values.

Two encodings are used on the wire:
 - ATSC A/65 System Time: unsigned 32-bit count of GPS seconds since the GPS epoch
   (1980-01-06T00:00:00Z), together with the current GPS-UTC leap second offset.
 - DVB / ETSI EN 300 468 Annex C: 16-bit Modified Julian Date followed by the time of the day
   as six BCD digits (hhmmss), for a total of 40 bits ("full MJD").

All datetime values are naive and express UTC, unless explicitly converted to JST.
"""

import ctypes
import datetime
import re
from typing import ClassVar

# Sentinel returned for an unset system time; also the Unix epoch.
EPOCH = datetime.datetime(1970, 1, 1)

# Number of seconds between the Unix epoch (1970-01-01) and the GPS epoch (1980-01-06).
UNIX_EPOCH_TO_GPS = 315_964_800

# Japan Standard Time is always UTC+9, there is no daylight saving time.
JST_OFFSET = datetime.timedelta(hours=9)

# Origin of the Modified Julian Date: MJD 0 is 1858-11-17.
MJD_EPOCH = datetime.datetime(1858, 11, 17)
MAX_MJD = 0xFFFF

SECONDS_PER_DAY = 24 * 60 * 60

# Largest offset that fits in four BCD digits (hhmm).
MAX_BCD_MINUTES = 99 * 60 + 59

_datetime_pattern = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})[ T]"
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})$"
)


# ======================== GPS TIME ========================


def gps_seconds_to_utc(system_time: int, gps_utc_offset: int) -> datetime.datetime:
    """Convert an ATSC system time to UTC.

    A system time of 0 means that the time is unset: EPOCH is returned.  Otherwise the GPS to
    Unix epoch difference is added, and the GPS-UTC leap second offset is removed (see
    ATSC A/65 section 6.1).  Any 32-bit system time and 8-bit offset gives a defined result.
    """
    if system_time == 0:
        return EPOCH
    return EPOCH + datetime.timedelta(seconds=system_time + UNIX_EPOCH_TO_GPS - gps_utc_offset)


def utc_to_gps_seconds(utc: datetime.datetime, gps_utc_offset: int) -> int:
    """Convert UTC back to an ATSC system time; EPOCH maps back to the unset value 0."""
    if utc == EPOCH:
        return 0
    unix_seconds = (utc - EPOCH) // datetime.timedelta(seconds=1)
    system_time = unix_seconds - UNIX_EPOCH_TO_GPS + gps_utc_offset
    if system_time <= 0 or system_time > 0xFFFFFFFF:
        raise ValueError("The time cannot be represented as an ATSC system time.")
    return system_time


# ======================== JAPAN STANDARD TIME ========================


def utc_to_jst(utc: datetime.datetime) -> datetime.datetime:
    return utc + JST_OFFSET


def jst_to_utc(jst: datetime.datetime) -> datetime.datetime:
    return jst - JST_OFFSET


# ======================== MODIFIED JULIAN DATE ========================


def mjd_encode(t: datetime.datetime) -> tuple[int, int]:
    """Split a datetime into a 16-bit MJD day count and a number of seconds in the day."""
    if t.microsecond != 0:
        raise ValueError("MJD times must be a whole number of seconds.")
    delta = t - MJD_EPOCH
    if delta.days < 0 or delta.days > MAX_MJD:
        raise ValueError(f"The date {t.date()} is out of the MJD range.")
    return (delta.days, delta.seconds)


def mjd_decode(day_count: int, seconds_of_day: int) -> datetime.datetime:
    """Exact inverse of mjd_encode."""
    if day_count < 0 or day_count > MAX_MJD:
        raise ValueError("The MJD day count is out of range.")
    if seconds_of_day < 0 or seconds_of_day >= SECONDS_PER_DAY:
        raise ValueError("The MJD time of day is out of range.")
    return MJD_EPOCH + datetime.timedelta(days=day_count, seconds=seconds_of_day)


# Full MJD: 16-bit day count then hh:mm:ss as 6 BCD digits
# ETSI EN 300 468 Annex C - Conversion between time and date conventions
class MJDBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("mjd", ctypes.c_uint16),
        ("hour_tens", ctypes.c_uint8, 4),
        ("hour_units", ctypes.c_uint8, 4),
        ("minute_tens", ctypes.c_uint8, 4),
        ("minute_units", ctypes.c_uint8, 4),
        ("second_tens", ctypes.c_uint8, 4),
        ("second_units", ctypes.c_uint8, 4),
    ]


MJD_SIZE = ctypes.sizeof(MJDBinaryFields)


def _bcd(tens: int, units: int) -> int:
    if tens > 9 or units > 9:
        raise ValueError("Invalid BCD digit.")
    return tens * 10 + units


def parse_mjd_binary(bin: MJDBinaryFields) -> datetime.datetime:
    hour = _bcd(bin.hour_tens, bin.hour_units)
    minute = _bcd(bin.minute_tens, bin.minute_units)
    second = _bcd(bin.second_tens, bin.second_units)
    if hour > 23 or minute > 59 or second > 59:
        raise ValueError("The MJD time of day is out of range.")
    return mjd_decode(bin.mjd, hour * 3600 + minute * 60 + second)


def mjd_binary_fields(t: datetime.datetime) -> MJDBinaryFields:
    day_count, seconds_of_day = mjd_encode(t)
    hour, remainder = divmod(seconds_of_day, 3600)
    minute, second = divmod(remainder, 60)
    return MJDBinaryFields(
        mjd=day_count,
        hour_tens=hour // 10,
        hour_units=hour % 10,
        minute_tens=minute // 10,
        minute_units=minute % 10,
        second_tens=second // 10,
        second_units=second % 10,
    )


# Duration in hours and minutes as 4 BCD digits (hhmm), used by local time offsets.
class BCDMinutesBinaryFields(ctypes.BigEndianStructure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_: ClassVar = [
        ("hour_tens", ctypes.c_uint8, 4),
        ("hour_units", ctypes.c_uint8, 4),
        ("minute_tens", ctypes.c_uint8, 4),
        ("minute_units", ctypes.c_uint8, 4),
    ]


def parse_bcd_minutes(bin: BCDMinutesBinaryFields) -> int:
    minute = _bcd(bin.minute_tens, bin.minute_units)
    if minute > 59:
        raise ValueError("The BCD minutes are out of range.")
    return _bcd(bin.hour_tens, bin.hour_units) * 60 + minute


def bcd_minutes_fields(minutes: int) -> BCDMinutesBinaryFields:
    assert minutes >= 0 and minutes <= MAX_BCD_MINUTES
    hour, minute = divmod(minutes, 60)
    return BCDMinutesBinaryFields(
        hour_tens=hour // 10,
        hour_units=hour % 10,
        minute_tens=minute // 10,
        minute_units=minute % 10,
    )


# ======================== TEXT FORMAT ========================


def format_datetime(t: datetime.datetime) -> str:
    """Format a date and time the way it appears in XML attributes: YYYY-MM-DD hh:mm:ss."""
    return (
        f"{t.year:04}-{t.month:02}-{t.day:02} "
        f"{t.hour:02}:{t.minute:02}:{t.second:02}"
    )


def parse_datetime(text_value: str) -> datetime.datetime:
    match = _datetime_pattern.match(text_value.strip())
    if not match:
        raise ValueError(f"Parsing error while reading date and time {text_value}.")
    return datetime.datetime(
        year=int(match.group("year")),
        month=int(match.group("month")),
        day=int(match.group("day")),
        hour=int(match.group("hour")),
        minute=int(match.group("minute")),
        second=int(match.group("second")),
    )
