import argparse
from collections import namedtuple
from typing import Dict, List

from gpm8212.drivers.gpm8212 import AmpRange, MeasurementStatus, VoltRange
from gpm8212.drivers.serial_port import (
    DEFAULT_CONFIGURATION,
    SerialPortConfiguration,
    create_configuration,
)

ReadConfiguration = namedtuple(
    "ReadConfiguration",
    [
        "serial_port_configuration",
        # Each of these settings is None if it should be left as-is on the meter
        "data_hold_enabled",
        "measurement_status",
        "volt_range",
        "amp_range",
        "max_response_bytes",
        "verbose",
    ],
)


def _enum_name_choices(enum_class):
    return [member.name for member in enum_class]


def _parse_args(args: List[str]) -> Dict:
    arg_parser = argparse.ArgumentParser(
        description="Take a single set of readings from a GWInstek GPM-8212 power meter",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    arg_parser.add_argument(
        "-p",
        "--port",
        dest="port",
        default=DEFAULT_CONFIGURATION.port,
        help=f"serial port the meter is connected to. Default: {DEFAULT_CONFIGURATION.port}",
    )

    arg_parser.add_argument(
        "--baud-rate",
        dest="baud_rate",
        type=int,
        default=DEFAULT_CONFIGURATION.baud_rate,
        help=f"serial baud rate. Default: {DEFAULT_CONFIGURATION.baud_rate}",
    )

    arg_parser.add_argument(
        "--read-timeout",
        dest="read_timeout_ms",
        type=int,
        default=0,
        help=(
            "milliseconds to wait on each serial read before giving up on the meter. "
            "Default: 0 (block until data arrives)"
        ),
    )

    arg_parser.add_argument(
        "--write-timeout",
        dest="write_timeout_ms",
        type=int,
        default=0,
        help="milliseconds to wait on each serial write. Default: 0 (no timeout)",
    )

    arg_parser.add_argument(
        "--data-hold",
        dest="data_hold_enabled",
        choices=["on", "off"],
        help="turn the meter's data hold on or off before reading",
    )

    arg_parser.add_argument(
        "--measurement-status",
        dest="measurement_status",
        choices=_enum_name_choices(MeasurementStatus),
        help="set whether the meter reports maximum, minimum or normal values",
    )

    arg_parser.add_argument(
        "--volt-range",
        dest="volt_range",
        choices=_enum_name_choices(VoltRange),
        help="set the meter's voltage range before reading",
    )

    arg_parser.add_argument(
        "--amp-range",
        dest="amp_range",
        choices=_enum_name_choices(AmpRange),
        help="set the meter's current range before reading",
    )

    arg_parser.add_argument(
        "--max-response-bytes",
        dest="max_response_bytes",
        type=int,
        help="give up on a response longer than this. Default: no limit",
    )

    arg_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="log serial traffic",
    )

    read_arg_namespace = arg_parser.parse_args(args)

    if (
        read_arg_namespace.max_response_bytes is not None
        and read_arg_namespace.max_response_bytes <= 0
    ):
        arg_parser.error("--max-response-bytes must be greater than 0")

    parsed_args = vars(read_arg_namespace)

    try:
        _get_serial_port_configuration(parsed_args)
    except ValueError as e:
        arg_parser.error(f"Invalid serial port settings: {e}")

    return parsed_args


def _get_serial_port_configuration(args: Dict) -> SerialPortConfiguration:
    return create_configuration(
        port=args["port"],
        baud_rate=args["baud_rate"],
        read_total_constant=args["read_timeout_ms"],
        write_total_constant=args["write_timeout_ms"],
    )


def get_read_configuration(cli_args: List[str]) -> ReadConfiguration:
    args = _parse_args(cli_args)

    data_hold_enabled = (
        {"on": True, "off": False}[args["data_hold_enabled"]]
        if args["data_hold_enabled"]
        else None
    )

    def _to_enum(enum_class, name):
        return enum_class[name] if name else None

    return ReadConfiguration(
        serial_port_configuration=_get_serial_port_configuration(args),
        data_hold_enabled=data_hold_enabled,
        measurement_status=_to_enum(MeasurementStatus, args["measurement_status"]),
        volt_range=_to_enum(VoltRange, args["volt_range"]),
        amp_range=_to_enum(AmpRange, args["amp_range"]),
        max_response_bytes=args["max_response_bytes"],
        verbose=args["verbose"],
    )
