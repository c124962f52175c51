import datetime
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, replace

import pytest

import ts_tools.si.descriptor as descriptor
import ts_tools.si.table as table
from ts_tools.si.standards import Context, Standards
from ts_tools.si.xml_util import InvalidAttributeError

REFERENCE_TIME = datetime.datetime(1993, 10, 13, 12, 45, 0)
REFERENCE_TIME_HEX = "C0 79 12 45 00"

FRA_REGION = descriptor.Region(
    country_code="FRA",
    region_id=0,
    time_offset=60,
    next_change=datetime.datetime(2024, 3, 31, 1, 0, 0),
    next_time_offset=120,
)
FRA_REGION_HEX = "46 52 41  02  01 00  EB F0 01 00 00  02 00"

OTHER_DESCRIPTOR = descriptor.Unknown(value=bytes.fromhex("A0 02 01 02"))


def make_regions(count: int) -> list[descriptor.Region]:
    return [replace(FRA_REGION, region_id=i % 0x40) for i in range(count)]


@dataclass
class TOTBinaryTestCase:
    name: str
    input: str
    parsed: table.TOT
    output: str | None = None
    standards: Standards = Standards.NONE


@pytest.mark.parametrize(
    "tc",
    [
        TOTBinaryTestCase(
            name="no descriptors",
            input=f"{REFERENCE_TIME_HEX}  F0 00",
            parsed=table.TOT(utc_time=REFERENCE_TIME),
        ),
        TOTBinaryTestCase(
            name="one region",
            input=f"{REFERENCE_TIME_HEX}  F0 0F  58 0D {FRA_REGION_HEX}",
            parsed=table.TOT(utc_time=REFERENCE_TIME, regions=[FRA_REGION]),
        ),
        TOTBinaryTestCase(
            name="region descriptors are written before other descriptors",
            input=f"{REFERENCE_TIME_HEX}  F0 13  A0 02 01 02  58 0D {FRA_REGION_HEX}",
            parsed=table.TOT(
                utc_time=REFERENCE_TIME,
                regions=[FRA_REGION],
                other_descriptors=[OTHER_DESCRIPTOR],
            ),
            output=f"{REFERENCE_TIME_HEX}  F0 13  58 0D {FRA_REGION_HEX}  A0 02 01 02",
        ),
        TOTBinaryTestCase(
            name="regions of several descriptors are merged",
            input=f"{REFERENCE_TIME_HEX}  F0 1E  58 0D {FRA_REGION_HEX}  58 0D {FRA_REGION_HEX}",
            parsed=table.TOT(utc_time=REFERENCE_TIME, regions=[FRA_REGION, FRA_REGION]),
            output=f"{REFERENCE_TIME_HEX}  F0 1C  58 1A {FRA_REGION_HEX} {FRA_REGION_HEX}",
        ),
        TOTBinaryTestCase(
            name="empty region descriptor is dropped",
            input=f"{REFERENCE_TIME_HEX}  00 02  58 00",
            parsed=table.TOT(utc_time=REFERENCE_TIME),
            output=f"{REFERENCE_TIME_HEX}  F0 00",
        ),
        TOTBinaryTestCase(
            name="Japan: the time field is JST",
            input=f"{REFERENCE_TIME_HEX}  F0 00",
            parsed=table.TOT(utc_time=datetime.datetime(1993, 10, 13, 3, 45, 0)),
            standards=Standards.JAPAN,
        ),
    ],
    ids=lambda tc: tc.name,
)
def test_tot_binary(tc: TOTBinaryTestCase) -> None:
    context = Context(standards=tc.standards)
    input = bytes.fromhex(tc.input)
    t = table.TOT.parse_binary(input, context)
    assert t == tc.parsed
    output = bytes.fromhex(tc.output) if tc.output is not None else input
    assert t.to_binary(context) == output


@pytest.mark.parametrize(
    "input,error,failure",
    [
        ("C0 79 12", table.TruncatedError, "expected at least 5 bytes for the time field"),
        ("C0 79 12 45 00 F0", table.TruncatedError, "too short for the descriptor loop"),
        ("C0 79 1A 45 00 F0 00", table.TableError, "Invalid TOT time field"),
        ("C0 79 12 45 00 F0 05 A0 02 01 02", descriptor.DescriptorOverrunError, "declares 5"),
        ("C0 79 12 45 00 F0 03 A0 02 01", descriptor.DescriptorOverrunError, "declares 2"),
        ("C0 79 12 45 00 F0 03 58 01 00", descriptor.DescriptorError, "not a multiple of 13"),
    ],
)
def test_tot_binary_failure(
    input: str, error: type[Exception], failure: str, context: Context
) -> None:
    with pytest.raises(error, match=failure):
        table.TOT.parse_binary(bytes.fromhex(input), context)


def test_tot_binary_trailing_bytes(context: Context) -> None:
    input = bytes.fromhex(f"{REFERENCE_TIME_HEX}  F0 00  FF FF")
    t, size = table.TOT.parse_binary_prefix(input, context)
    assert t == table.TOT(utc_time=REFERENCE_TIME)
    assert size == 7


def test_tot_many_regions(context: Context) -> None:
    regions = make_regions(45)
    tot = table.TOT(utc_time=REFERENCE_TIME, regions=regions)

    region_descriptors = tot.region_descriptors()
    assert [len(d.regions) for d in region_descriptors] == [19, 19, 7]

    payload = tot.to_binary(context)
    assert len(payload) == 5 + 2 + 3 * 2 + 45 * 13
    assert payload[7:9] == bytes.fromhex("58 F7")

    parsed = table.TOT.parse_binary(payload, context)
    assert parsed == tot
    assert isinstance(parsed, table.TOT)
    assert parsed.regions == regions


def test_tot_region_chunks(context: Context) -> None:
    for count, sizes in [(0, []), (19, [19]), (20, [19, 1]), (38, [19, 19])]:
        tot = table.TOT(utc_time=REFERENCE_TIME, regions=make_regions(count))
        assert [len(d.regions) for d in tot.region_descriptors()] == sizes


def test_tot_capacity(context: Context, caplog: pytest.LogCaptureFixture) -> None:
    # 80 regions need descriptors of 249, 249, 249, 249 and 54 bytes.  1017 - 5 - 2 = 1010
    # bytes are left for the descriptor loop: the last descriptor does not fit.
    regions = make_regions(80)
    tot = table.TOT(utc_time=REFERENCE_TIME, regions=regions, other_descriptors=[OTHER_DESCRIPTOR])

    with caplog.at_level(logging.WARNING):
        payload, count = tot.to_binary_partial(context)
    assert count == 4
    assert len(payload) == 5 + 2 + 4 * 249
    assert payload[5:7] == bytes.fromhex("F3 E4")
    assert "dropped 2 of 6 descriptors" in caplog.text

    assert tot.to_binary(context) == payload
    assert table.TOT.parse_binary(payload, context) == table.TOT(
        utc_time=REFERENCE_TIME, regions=regions[:76]
    )


def test_tot_descriptors_fit_exactly(context: Context, caplog: pytest.LogCaptureFixture) -> None:
    # 4 * 249 + 14 bytes fill the 1010 bytes available for the descriptor loop
    last = descriptor.Unknown.from_payload(0xA1, bytes(12))
    tot = table.TOT(utc_time=REFERENCE_TIME, regions=make_regions(76), other_descriptors=[last])
    with caplog.at_level(logging.WARNING):
        payload, count = tot.to_binary_partial(context)
    assert count == 5
    assert len(payload) == table.MAX_SHORT_SECTION_PAYLOAD_SIZE
    assert caplog.text == ""


def test_tot_japan_round_trip(japan_context: Context) -> None:
    tot = table.TOT(utc_time=datetime.datetime(2024, 12, 31, 20, 0, 0), regions=[FRA_REGION])
    payload = tot.to_binary(japan_context)
    # 2025-01-01 05:00:00 JST
    assert payload[:5] == bytes.fromhex("ED 04 05 00 00")
    assert table.TOT.parse_binary(payload, japan_context) == tot
    assert table.TOT.parse_binary(payload, Context()) == replace(
        tot, utc_time=datetime.datetime(2025, 1, 1, 5, 0, 0)
    )


@pytest.mark.parametrize(
    "tot,failure",
    [
        (
            table.TOT(utc_time=datetime.datetime(2000, 1, 1, 0, 0, 0, 1)),
            "whole number of seconds",
        ),
        (table.TOT(utc_time=datetime.datetime(1800, 1, 1)), "out of the MJD range"),
        (
            table.TOT(
                utc_time=REFERENCE_TIME,
                regions=[FRA_REGION, replace(FRA_REGION, country_code="FRAN")],
            ),
            "Region 1: The country code must have exactly 3 characters.",
        ),
        (
            table.TOT(
                utc_time=REFERENCE_TIME,
                other_descriptors=[descriptor.LocalTimeOffset(regions=[FRA_REGION])],
            ),
            "must be provided as regions",
        ),
        (
            table.TOT(
                utc_time=REFERENCE_TIME,
                other_descriptors=[
                    descriptor.Unknown(value=bytes.fromhex(f"58 0D {FRA_REGION_HEX}"))
                ],
            ),
            "must be provided as regions",
        ),
    ],
)
def test_tot_validate(tot: table.TOT, failure: str, context: Context) -> None:
    with pytest.raises(table.TableValidationError, match=failure):
        tot.to_binary(context)


def test_tot_validate_japan(context: Context, japan_context: Context) -> None:
    # representable in UTC, but not once shifted to JST
    tot = table.TOT(utc_time=datetime.datetime(2038, 4, 22, 20, 0, 0))
    assert tot.validate(context) is None
    assert tot.validate(japan_context) is not None


def test_tot_local_time() -> None:
    tot = table.TOT(utc_time=REFERENCE_TIME)
    assert tot.local_time(FRA_REGION) == datetime.datetime(1993, 10, 13, 13, 45, 0)
    assert tot.local_time(replace(FRA_REGION, time_offset=-570)) == datetime.datetime(
        1993, 10, 13, 3, 15, 0
    )


def test_split_descriptors(context: Context) -> None:
    other = descriptor.Unknown(value=bytes.fromhex("A1 00"))
    regions, others = table.split_descriptors(
        [
            descriptor.LocalTimeOffset(regions=make_regions(2)),
            OTHER_DESCRIPTOR,
            descriptor.LocalTimeOffset(regions=make_regions(3)),
            other,
        ],
        context,
    )
    assert regions == make_regions(2) + make_regions(3)
    assert others == [OTHER_DESCRIPTOR, other]


def test_split_descriptors_opaque_region_descriptor(context: Context) -> None:
    # a local time offset descriptor is recognized by its tag, even when not decoded
    opaque = descriptor.Unknown(value=bytes.fromhex(f"58 0D {FRA_REGION_HEX}"))
    regions, others = table.split_descriptors([OTHER_DESCRIPTOR, opaque], context)
    assert regions == [FRA_REGION]
    assert others == [OTHER_DESCRIPTOR]

    with pytest.raises(descriptor.DescriptorError, match="not a multiple of 13"):
        table.split_descriptors([descriptor.Unknown(value=bytes.fromhex("58 01 00"))], context)


def test_tot_xml(context: Context) -> None:
    tot = table.TOT(
        utc_time=REFERENCE_TIME, regions=make_regions(20), other_descriptors=[OTHER_DESCRIPTOR]
    )
    element = tot.to_xml(ET.Element("tsduck"), context)
    assert element.tag == "TOT"
    assert element.attrib == {"UTC_time": "1993-10-13 12:45:00"}
    assert [child.tag for child in element] == [
        "local_time_offset_descriptor",
        "local_time_offset_descriptor",
        "generic_descriptor",
    ]
    assert [len(child) for child in element][:2] == [19, 1]
    assert table.parse_xml(element, context) == tot


def test_tot_xml_japan(japan_context: Context) -> None:
    # the XML always holds UTC
    element = ET.fromstring('<TOT UTC_time="1993-10-13 03:45:00"/>')
    tot = table.parse_xml(element, japan_context)
    assert tot == table.TOT(utc_time=datetime.datetime(1993, 10, 13, 3, 45, 0))
    assert tot.to_xml(ET.Element("tsduck"), japan_context).get("UTC_time") == (
        "1993-10-13 03:45:00"
    )


def test_tot_xml_generic_region_descriptor(context: Context) -> None:
    element = ET.fromstring(
        '<TOT UTC_time="1993-10-13 12:45:00">'
        f'<generic_descriptor tag="0x58">{FRA_REGION_HEX}</generic_descriptor>'
        '<generic_descriptor tag="0xA0">01 02</generic_descriptor>'
        "</TOT>"
    )
    tot = table.parse_xml(element, context)
    assert tot == table.TOT(
        utc_time=REFERENCE_TIME, regions=[FRA_REGION], other_descriptors=[OTHER_DESCRIPTOR]
    )
    assert tot.to_binary(context) == bytes.fromhex(
        f"{REFERENCE_TIME_HEX}  F0 13  58 0D {FRA_REGION_HEX}  A0 02 01 02"
    )


@pytest.mark.parametrize(
    "xml,failure",
    [
        ("<TOT/>", "Missing attribute UTC_time"),
        ('<TOT UTC_time="1993-10-13"/>', "not a valid date and time"),
        ('<TOT UTC_time="1800-01-01 00:00:00"/>', "out of the MJD range"),
        ('<TOT UTC_time="1993-10-13 12:45:00"><region/></TOT>', "Unsupported descriptor"),
        (
            '<TOT UTC_time="1993-10-13 12:45:00">'
            '<generic_descriptor tag="0x58">01 02</generic_descriptor></TOT>',
            "not a multiple of 13",
        ),
    ],
)
def test_tot_xml_failure(xml: str, failure: str, context: Context) -> None:
    with pytest.raises(InvalidAttributeError, match=failure):
        table.parse_xml(ET.fromstring(xml), context)
