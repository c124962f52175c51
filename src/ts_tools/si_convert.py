import argparse
import io
import logging
import sys
from typing import BinaryIO, Iterator

from colorama import Fore, Style, just_fix_windows_console

import ts_tools.io_util as io_util
import ts_tools.si.descriptor as descriptor
import ts_tools.si.section as section
import ts_tools.si.table as table
import ts_tools.si.time_util as time_util
import ts_tools.si.xml_doc as xml_doc
from ts_tools.si.standards import Context, Standards

logger = logging.getLogger(__name__)


class SIConvertArgs(argparse.Namespace):
    input_file: str
    output_file: str | None
    to: str
    japan: bool
    verbose: bool


def parse_args(argv: list[str] | None = None) -> SIConvertArgs:
    parser = argparse.ArgumentParser(
        prog="ts_si_convert",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Convert STT and TOT tables between binary sections and XML, or dump them.",
    )
    parser.add_argument(
        "input_file",
        type=str,
        help="Input file: either binary sections, one after the other, or an XML document "
        "with a <tsduck> root element.  The format is detected from the contents.",
    )
    parser.add_argument(
        "--output",
        dest="output_file",
        type=str,
        help="Output file.  XML and dumps are written to standard output by default.",
    )
    parser.add_argument(
        "--to",
        choices=["xml", "binary", "dump"],
        default="dump",
        type=str,
        help="Output format.",
    )
    parser.add_argument(
        "--japan",
        action="store_true",
        help="Use the Japanese variants of the tables: the TOT time is JST instead of UTC.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debugging information.",
    )

    return parser.parse_args(argv, namespace=SIConvertArgs())


def read_sections(file: BinaryIO) -> Iterator[bytes]:
    """Read consecutive sections until EOF or 0xFF stuffing."""
    while True:
        header = io_util.read_file_bytes(file, table.base.SHORT_SECTION_HEADER_SIZE)
        if len(header) == 0 or header[0] == 0xFF:
            return
        size = section.section_size(header)
        remaining = size - len(header)
        rest = io_util.read_file_bytes(file, remaining)
        if len(rest) != remaining:
            raise section.SectionError(
                f"Truncated section: expected {size} bytes but only {len(header) + len(rest)} "
                "remain in the file."
            )
        yield header + rest


def is_xml(data: bytes) -> bool:
    return data.lstrip()[:1] == b"<"


def read_tables(data: bytes, context: Context) -> list[table.Table]:
    if is_xml(data):
        logger.debug("Reading input as XML.")
        return xml_doc.tables_from_xml(data.decode("utf-8"), context)

    logger.debug("Reading input as binary sections.")
    return [
        section.parse_section(section_bytes, context)
        for section_bytes in read_sections(io.BytesIO(data))
    ]


def dump_table(t: table.Table, context: Context) -> None:
    print(f"{Fore.RED}* {t.xml_name}, table ID {t.table_id:#04x}{Style.RESET_ALL}")
    if isinstance(t, table.STT):
        utc_time = (
            "none" if t.system_time == 0 else time_util.format_datetime(t.utc_time) + " UTC"
        )
        print(f"  Protocol version: {t.protocol_version}")
        print(f"  System time: {t.system_time} GPS seconds")
        print(f"  GPS-UTC offset: {t.gps_utc_offset} seconds")
        print(f"  Corresponding UTC time: {Fore.YELLOW}{utc_time}{Style.RESET_ALL}")
        print(
            f"  Daylight saving time: {'yes' if t.dst_status else 'no'}, "
            f"next switch day: {t.dst_day_of_month}, hour: {t.dst_hour}"
        )
        dump_descriptors(t.descriptors, context)
    elif isinstance(t, table.TOT):
        print(
            f"  UTC time: {Fore.YELLOW}{time_util.format_datetime(t.utc_time)}{Style.RESET_ALL}"
        )
        for region in t.regions:
            print(
                f"  {Fore.CYAN}Country: {region.country_code}, region: {region.region_id}"
                f"{Style.RESET_ALL}"
            )
            print(
                f"    Local time: {time_util.format_datetime(t.local_time(region))}, "
                f"offset: {descriptor.format_time_offset(region.time_offset)}"
            )
            print(
                f"    Next change: {time_util.format_datetime(region.next_change)} UTC, "
                f"next offset: {descriptor.format_time_offset(region.next_time_offset)}"
            )
        dump_descriptors(t.other_descriptors, context)


def dump_descriptors(descriptors: list[descriptor.Descriptor], context: Context) -> None:
    for d in descriptors:
        payload = d.to_binary(context)[descriptor.base.HEADER_SIZE :]
        print(
            f"  {Fore.GREEN}Descriptor {d.tag:#04x}{Style.RESET_ALL} "
            f"{payload.hex(' ').upper()}"
        )


def main(argv: list[str] | None = None) -> None:
    just_fix_windows_console()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    context = Context(standards=Standards.JAPAN if args.japan else Standards.NONE)

    logger.info("Reading tables from %s...", args.input_file)
    with open(args.input_file, mode="rb") as input_file:
        data = input_file.read()
    tables = read_tables(data, context)
    logger.info("Read %d tables.", len(tables))

    match args.to:
        case "xml":
            text = xml_doc.tables_to_xml(tables, context)
            if args.output_file is None:
                sys.stdout.write(text)
            else:
                with open(args.output_file, "wt", encoding="utf-8") as output_text_file:
                    output_text_file.write(text)
        case "binary":
            if args.output_file is None:
                raise ValueError("Binary output requires an output file.")
            with open(args.output_file, mode="wb") as output_file:
                for t in tables:
                    output_file.write(section.build_section(t, context))
        case "dump":
            for t in tables:
                dump_table(t, context)


if __name__ == "__main__":
    main()
