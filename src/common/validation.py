"""Unit and physical-range checks for climate records.

Pure functions: nothing here performs I/O, and the only state consulted is the
range table passed in by the caller.
"""

from typing import Final

from .errors import InvalidUnitError, OutOfRangeError
from .models import ClimateRecord, EmissionReading, PollutionReading, TemperatureReading
from .units import DEFAULT_RANGE_TABLE, SUB_READING_UNITS, RangeTable

Reading = EmissionReading | TemperatureReading | PollutionReading

# Check order is fixed so the first reported error is predictable
SUB_READINGS: Final[tuple[str, ...]] = ("emissions", "temperature", "pollution")


def reading_measure(reading: Reading) -> float:
    """Return the numeric field of a sub-reading (amount, value or level)."""
    if isinstance(reading, EmissionReading):
        return reading.amount
    if isinstance(reading, TemperatureReading):
        return reading.value
    return reading.level


def validate_reading(sub_reading: str, reading: Reading, ranges: RangeTable = DEFAULT_RANGE_TABLE) -> None:
    allowed = SUB_READING_UNITS[sub_reading]
    if reading.unit not in allowed or reading.unit not in ranges:
        raise InvalidUnitError(sub_reading, reading.unit)

    bounds = ranges[reading.unit]
    measure = reading_measure(reading)
    if not bounds.contains(measure):
        raise OutOfRangeError(sub_reading, measure, reading.unit, bounds.min, bounds.max)


def validate_record(record: ClimateRecord, ranges: RangeTable = DEFAULT_RANGE_TABLE) -> None:
    """Raise on the first invalid sub-reading; absent sub-readings are skipped."""
    for name in SUB_READINGS:
        reading: Reading | None = getattr(record, name)
        if reading is None:
            continue
        validate_reading(name, reading, ranges)
