import logging
import sys

import pandas as pd
import serial

from gpm8212.configure import ReadConfiguration, get_read_configuration
from gpm8212.drivers.exceptions import TransportError
from gpm8212.drivers.gpm8212 import GPM8212
from gpm8212.readings import get_readings
from gpm8212.retry import retry_on_exception

logger = logging.getLogger(__name__)


def apply_settings(meter: GPM8212, read_configuration: ReadConfiguration) -> None:
    """ Send any settings provided in the configuration to the meter, skipping the rest """
    if read_configuration.data_hold_enabled is not None:
        logger.info(f"Setting data hold: {read_configuration.data_hold_enabled}")
        meter.set_data_hold_enabled(read_configuration.data_hold_enabled)

    if read_configuration.measurement_status is not None:
        logger.info(f"Setting measurement status: {read_configuration.measurement_status}")
        meter.set_measurement_status(read_configuration.measurement_status)

    if read_configuration.volt_range is not None:
        logger.info(f"Setting volt range: {read_configuration.volt_range}")
        meter.set_volt_range(read_configuration.volt_range)

    if read_configuration.amp_range is not None:
        logger.info(f"Setting amp range: {read_configuration.amp_range}")
        meter.set_amp_range(read_configuration.amp_range)


# Each try opens its own connection
@retry_on_exception((TransportError, serial.SerialException))
def read_power_meter(read_configuration: ReadConfiguration) -> pd.Series:
    """ Open the meter, apply any requested settings and take one set of readings

    Returns:
        pd.Series of Decimal readings, indexed by reading name
    """
    with GPM8212.open(
        read_configuration.serial_port_configuration,
        max_response_bytes=read_configuration.max_response_bytes,
    ) as meter:
        apply_settings(meter, read_configuration)
        return get_readings(meter)


def run(cli_args=None):
    if cli_args is None:
        # First argument is the name of the command itself, not an "argument" we want to parse
        cli_args = sys.argv[1:]
    read_configuration = get_read_configuration(cli_args)

    logging_format = "%(asctime)s [%(levelname)s]--- %(message)s"
    logging.basicConfig(
        level=logging.DEBUG if read_configuration.verbose else logging.INFO,
        format=logging_format,
        handlers=[logging.StreamHandler()],
    )

    logger.info(
        f"Reading GPM-8212 on {read_configuration.serial_port_configuration.port}"
    )

    readings = read_power_meter(read_configuration)

    for name, value in readings.items():
        logger.info(f"{name}: {value}")

    return readings
