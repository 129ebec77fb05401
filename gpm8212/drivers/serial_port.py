import logging
from collections import namedtuple
from typing import Optional

import serial

logger = logging.getLogger(__name__)

# Timeout fields are in milliseconds and follow Win32 COMMTIMEOUTS semantics,
# where 0 means "no timeout".
SerialPortConfiguration = namedtuple(
    "SerialPortConfiguration",
    [
        "port",  # serial port to use, e.g. "COM1" or "/dev/ttyUSB0"
        "baud_rate",
        "byte_size",  # data bits: 5, 6, 7 or 8
        "parity",  # one of serial.PARITY_NAMES, e.g. "N"
        "stop_bits",  # 1, 1.5 or 2
        "read_interval",  # max time allowed between two received bytes
        "read_total_constant",
        "read_total_multiplier",  # per byte requested
        "write_total_constant",
        "write_total_multiplier",  # per byte written
    ],
)

# The GPM-8212 ships configured for 9600 baud, 8 data bits, no parity, 1 stop bit
DEFAULT_CONFIGURATION = SerialPortConfiguration(
    port="COM1",
    baud_rate=9600,
    byte_size=serial.EIGHTBITS,
    parity=serial.PARITY_NONE,
    stop_bits=serial.STOPBITS_ONE,
    read_interval=0,
    read_total_constant=0,
    read_total_multiplier=0,
    write_total_constant=0,
    write_total_multiplier=0,
)

_TIMEOUT_FIELDS = [
    "read_interval",
    "read_total_constant",
    "read_total_multiplier",
    "write_total_constant",
    "write_total_multiplier",
]


def create_configuration(**overrides) -> SerialPortConfiguration:
    """ Build a SerialPortConfiguration from the GPM-8212 defaults, replacing any fields provided

    Example usage:
    >>> create_configuration(port="/dev/ttyUSB0", read_total_constant=500)

    Raises:
        ValueError if an unknown field is provided or the resulting configuration is invalid
    """
    configuration = DEFAULT_CONFIGURATION._replace(**overrides)
    validate_configuration(configuration)
    return configuration


def get_configuration_validation_errors(configuration: SerialPortConfiguration):
    checks = {
        "Baud rate must be greater than 0.": (
            configuration.baud_rate is not None and configuration.baud_rate > 0
        ),
        "Port must be provided.": configuration.port is not None,
        "Byte size must be provided.": configuration.byte_size is not None,
        "Parity must be provided.": configuration.parity is not None,
        "Stop bits must be provided.": configuration.stop_bits is not None,
        **{
            f"{field} must be a non-negative number of milliseconds.": (
                getattr(configuration, field) is not None
                and getattr(configuration, field) >= 0
            )
            for field in _TIMEOUT_FIELDS
        },
    }

    return [error_message for error_message, check in checks.items() if not check]


def validate_configuration(configuration: SerialPortConfiguration) -> None:
    errors = get_configuration_validation_errors(configuration)
    if errors:
        raise ValueError(errors)


def _milliseconds_to_timeout(milliseconds: float) -> Optional[float]:
    """ Convert a COMMTIMEOUTS-style millisecond value into a pyserial timeout in seconds.
    Zero means "wait forever", which pyserial spells as None.
    """
    return milliseconds / 1000 if milliseconds else None


def get_serial_kwargs(configuration: SerialPortConfiguration) -> dict:
    """ Translate a SerialPortConfiguration into keyword arguments for serial.Serial

    The protocol reads and writes one byte at a time, so the per-byte multipliers are applied once
    to each read or write call.
    """
    return dict(
        port=configuration.port,
        baudrate=configuration.baud_rate,
        bytesize=configuration.byte_size,
        parity=configuration.parity,
        stopbits=configuration.stop_bits,
        timeout=_milliseconds_to_timeout(
            configuration.read_total_multiplier + configuration.read_total_constant
        ),
        inter_byte_timeout=_milliseconds_to_timeout(configuration.read_interval),
        write_timeout=_milliseconds_to_timeout(
            configuration.write_total_multiplier + configuration.write_total_constant
        ),
    )


def open_serial_connection(configuration: SerialPortConfiguration) -> serial.Serial:
    """ Open a serial connection using the given configuration

    Args:
        configuration: SerialPortConfiguration describing the port and its settings

    Returns:
        an open serial.Serial connection. The caller is responsible for closing it.

    Raises:
        serial.SerialException if serial port can't be opened
        ValueError if parameters are out of range, e.g. baud rate etc.
    """
    validate_configuration(configuration)

    serial_kwargs = get_serial_kwargs(configuration)
    logger.debug(f"Opening serial connection: {serial_kwargs}")

    return serial.Serial(**serial_kwargs)
