import logging
from enum import Enum
from typing import Optional

import serial

from gpm8212.drivers.exceptions import (
    CloseError,
    InvalidReading,
    ReadTimeout,
    ResponseTooLong,
    TransportError,
    UnsupportedVariant,
)
from gpm8212.drivers.serial_port import SerialPortConfiguration, open_serial_connection

"""
A driver for the GWInstek GPM-8212 digital power meter

The meter speaks a simple ASCII protocol over RS-232. The host sends a three character
mnemonic followed by a carriage return. Setting commands (F.., R..) get no response. Query
commands (V..) are answered with the reading as ASCII digits, also terminated by a carriage return.

There is no request ID or checksum: commands and responses are matched only by ordering, so a
connection must only be driven by one caller at a time. There's no locking here; that's on the caller.
"""

logger = logging.getLogger(__name__)

_GPM8212_TERMINATOR_BYTE = b"\r"


class MeasurementStatus(Enum):
    """ Which value the meter reports for a quantity """

    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    NORMAL = "normal"


class VoltRange(Enum):
    V640 = "640V"
    V320 = "320V"
    V160 = "160V"
    V80 = "80V"
    V40 = "40V"
    V20 = "20V"
    V10 = "10V"
    V5 = "5V"
    VAUTO = "auto"


class AmpRange(Enum):
    A20_48 = "20.48A"
    A10_24 = "10.24A"
    A5_12 = "5.12A"
    A2_56 = "2.56A"
    A1_28 = "1.28A"
    A_64 = "0.64A"
    A_32 = "0.32A"
    A_16 = "0.16A"
    AAUTO = "auto"


class ReadingType(Enum):
    VOLTAGE = "voltage (V)"
    CURRENT = "current (A)"
    WATT = "power (W)"
    PF = "power factor"
    HZ = "frequency (Hz)"


DATA_HOLD_TO_COMMAND = {True: "F00", False: "F01"}

MEASUREMENT_STATUS_TO_COMMAND = {
    MeasurementStatus.MAXIMUM: "F02",
    MeasurementStatus.MINIMUM: "F03",
    MeasurementStatus.NORMAL: "F04",
}

# Volt and amp ranges share the "R" command family. Note that the auto ranges are
# R16 and R17, not adjacent to the manual ranges.
VOLT_RANGE_TO_COMMAND = {
    VoltRange.V640: "R00",
    VoltRange.V320: "R01",
    VoltRange.V160: "R02",
    VoltRange.V80: "R03",
    VoltRange.V40: "R04",
    VoltRange.V20: "R05",
    VoltRange.V10: "R06",
    VoltRange.V5: "R07",
    VoltRange.VAUTO: "R16",
}

AMP_RANGE_TO_COMMAND = {
    AmpRange.A20_48: "R08",
    AmpRange.A10_24: "R09",
    AmpRange.A5_12: "R10",
    AmpRange.A2_56: "R11",
    AmpRange.A1_28: "R12",
    AmpRange.A_64: "R13",
    AmpRange.A_32: "R14",
    AmpRange.A_16: "R15",
    AmpRange.AAUTO: "R17",
}

READING_TYPE_TO_COMMAND = {
    ReadingType.VOLTAGE: "V00",
    ReadingType.CURRENT: "V01",
    ReadingType.WATT: "V02",
    ReadingType.PF: "V03",
    ReadingType.HZ: "V04",
}


def _lookup_command(command_table: dict, value, description: str) -> str:
    try:
        return command_table[value]
    except (KeyError, TypeError):
        raise UnsupportedVariant(f"Not sure what to do with {description} {value!r}.")


class GPM8212:
    """ Communicates with a GWInstek GPM-8212 over an open byte connection

    Example usage:
    >>> with GPM8212.open(create_configuration(port="/dev/ttyUSB0")) as meter:
    >>>     meter.set_volt_range(VoltRange.VAUTO)
    >>>     meter.get_voltage()
    '120.5'

    Args:
        reader: object with read(size) -> bytes and close(), e.g. a serial.Serial
        writer: object with write(data) and close(). Defaults to reader, for duplex connections.
        max_response_bytes: if provided, raise ResponseTooLong when a response runs longer than this
            without a terminator. Default: None (wait for the terminator no matter how long it takes).
    """

    def __init__(self, reader, writer=None, max_response_bytes: Optional[int] = None):
        if reader is None:
            raise ValueError("A reader is required to communicate with the GPM-8212")

        self.reader = reader
        self.writer = writer if writer is not None else reader
        self.max_response_bytes = max_response_bytes

    @classmethod
    def open(cls, configuration: SerialPortConfiguration, **kwargs) -> "GPM8212":
        """ Open a serial connection with the given configuration and return a GPM8212 using it

        Raises:
            serial.SerialException if serial port can't be opened
            ValueError if the configuration is invalid
        """
        return cls(open_serial_connection(configuration), **kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            self.close()
            return

        # The original error propagates; a close failure is only logged
        try:
            self.close()
        except CloseError:
            logger.exception(
                f"Failed to close GPM-8212 connection while handling {exc_type.__name__}"
            )

    def set_data_hold_enabled(self, enabled: bool) -> None:
        self.send_command(DATA_HOLD_TO_COMMAND[bool(enabled)])

    def set_measurement_status(self, measurement_status: MeasurementStatus) -> None:
        self.send_command(
            _lookup_command(
                MEASUREMENT_STATUS_TO_COMMAND, measurement_status, "measurement status"
            )
        )

    def set_volt_range(self, volt_range: VoltRange) -> None:
        self.send_command(
            _lookup_command(VOLT_RANGE_TO_COMMAND, volt_range, "volt range")
        )

    def set_amp_range(self, amp_range: AmpRange) -> None:
        self.send_command(_lookup_command(AMP_RANGE_TO_COMMAND, amp_range, "amp range"))

    def get_reading(self, reading_type: ReadingType) -> str:
        """ Query the meter for a reading

        Returns:
            the reading exactly as the meter reported it, e.g. "120.5". Use
            gpm8212.readings.parse_reading to convert it to a Decimal.
        """
        return self.send_command_and_get_results(
            _lookup_command(READING_TYPE_TO_COMMAND, reading_type, "reading type")
        )

    def get_voltage(self) -> str:
        return self.get_reading(ReadingType.VOLTAGE)

    def get_current(self) -> str:
        return self.get_reading(ReadingType.CURRENT)

    def get_watt(self) -> str:
        return self.get_reading(ReadingType.WATT)

    def get_pf(self) -> str:
        return self.get_reading(ReadingType.PF)

    def get_hz(self) -> str:
        return self.get_reading(ReadingType.HZ)

    def _write(self, data: bytes) -> None:
        try:
            self.writer.write(data)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Failed writing {data!r} to the GPM-8212: {e}") from e

    def _read_byte(self) -> bytes:
        try:
            return self.reader.read(1)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Failed reading from the GPM-8212: {e}") from e

    def send_command(self, command: str) -> None:
        """ Send a command mnemonic to the meter, one byte at a time, followed by the terminator

        Args:
            command: str of command to send, without termination character, e.g. "R16"

        Raises:
            TransportError if the connection fails
        """
        logger.debug(f"GPM-8212 command: {command!r}")

        for command_byte in command.encode("ascii"):
            self._write(bytes([command_byte]))

        self._write(_GPM8212_TERMINATOR_BYTE)

    def send_command_and_get_results(self, command: str) -> str:
        """ Send a command mnemonic and read the meter's response up to the terminator

        With no read timeout configured on the connection, this blocks until the terminator arrives.
        If the connection has a read timeout (e.g. serial.Serial's timeout), an empty read means it
        expired and ReadTimeout is raised.

        Args:
            command: str of command to send, without termination character, e.g. "V00"

        Returns:
            response, as a string with the terminator stripped

        Raises:
            TransportError if the connection fails
            ReadTimeout if a read on the connection times out before the terminator arrives
            ResponseTooLong if max_response_bytes is set and the response exceeds it
        """
        self.send_command(command)

        response = bytearray()
        while True:
            next_byte = self._read_byte()
            if not next_byte:
                raise ReadTimeout(
                    f"Timed out waiting for GPM-8212 response to {command!r} "
                    f"after receiving {bytes(response)!r}"
                )
            if next_byte == _GPM8212_TERMINATOR_BYTE:
                break

            response += next_byte
            if (
                self.max_response_bytes is not None
                and len(response) > self.max_response_bytes
            ):
                raise ResponseTooLong(
                    f"GPM-8212 response to {command!r} exceeded {self.max_response_bytes} bytes "
                    f"without a terminator: {bytes(response)!r}"
                )

        logger.debug(f"GPM-8212 response to {command!r}: {bytes(response)!r}")

        try:
            return response.decode("ascii")
        except UnicodeDecodeError:
            raise InvalidReading(
                f"GPM-8212 response to {command!r} is not ASCII: {bytes(response)!r}"
            )

    def close(self) -> None:
        """ Close the writer and the reader

        Both are attempted even if the first one fails.

        Raises:
            CloseError if either half fails to close. If both fail, the error carries both failures
            and is chained from the writer's failure.
        """
        write_error = _close_and_get_any_exception(self.writer)
        read_error = (
            _close_and_get_any_exception(self.reader)
            if self.reader is not self.writer
            else None
        )

        if write_error is not None or read_error is not None:
            raise CloseError(write_error=write_error, read_error=read_error) from (
                write_error if write_error is not None else read_error
            )


def _close_and_get_any_exception(stream) -> Optional[Exception]:
    try:
        stream.close()
    except Exception as e:
        logger.exception("Failed to close GPM-8212 connection")
        return e
    return None
