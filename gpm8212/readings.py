from decimal import Decimal, InvalidOperation

import pandas as pd

from gpm8212.drivers.exceptions import InvalidReading
from gpm8212.drivers.gpm8212 import GPM8212, ReadingType


def parse_reading(reading: str) -> Decimal:
    """ Convert a reading string from the meter into a Decimal, keeping its exact precision

    Raises:
        InvalidReading if the reading isn't a finite decimal number
    """
    try:
        value = Decimal(reading)
    except (InvalidOperation, TypeError):
        raise InvalidReading(f"GPM-8212 reading {reading!r} is not a decimal number")

    # Decimal happily accepts "NaN" and "Infinity", which the meter never sends
    if not value.is_finite():
        raise InvalidReading(f"GPM-8212 reading {reading!r} is not a finite number")

    return value


def get_readings(meter: GPM8212) -> pd.Series:
    """ Query every reading the meter provides, in command order (V00 through V04)

    Returns:
        pd.Series of Decimal readings, indexed by reading name, e.g. "voltage (V)"
    """
    return pd.Series(
        {
            reading_type.value: parse_reading(meter.get_reading(reading_type))
            for reading_type in ReadingType
        }
    )
