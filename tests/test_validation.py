import math

import pytest

from common.errors import InvalidUnitError, OutOfRangeError, RecordValidationError
from common.models import ClimateRecord, EmissionReading, PollutionReading, TemperatureReading
from common.units import DEFAULT_RANGE_TABLE, build_range_table
from common.validation import validate_reading, validate_record


def _record(**readings: object) -> ClimateRecord:
    return ClimateRecord.model_validate({"recordId": "r1", "deviceId": "dev-1", **readings})


@pytest.mark.parametrize(
    ("unit", "low", "high"),
    [
        ("tCO2", 0, 1_000_000_000),
        ("kgCO2", 0.01, 10_000_000),
        ("gCO2", 0.001, 10_000_000),
    ],
)
def test_emission_bounds_are_inclusive(unit: str, low: float, high: float) -> None:
    validate_reading("emissions", EmissionReading(sensorId="s1", amount=low, unit=unit))
    validate_reading("emissions", EmissionReading(sensorId="s1", amount=high, unit=unit))

    with pytest.raises(OutOfRangeError):
        validate_reading("emissions", EmissionReading(sensorId="s1", amount=low - 1, unit=unit))
    with pytest.raises(OutOfRangeError):
        validate_reading("emissions", EmissionReading(sensorId="s1", amount=high + 1, unit=unit))


@pytest.mark.parametrize(
    ("unit", "low", "high"),
    [("°C", -273.15, 1000), ("°F", -459.67, 1800), ("K", 0, 1500)],
)
def test_temperature_bounds(unit: str, low: float, high: float) -> None:
    validate_reading("temperature", TemperatureReading(sensorId="t1", value=low, unit=unit))
    validate_reading("temperature", TemperatureReading(sensorId="t1", value=high, unit=unit))
    with pytest.raises(OutOfRangeError):
        validate_reading("temperature", TemperatureReading(sensorId="t1", value=high + 0.5, unit=unit))


@pytest.mark.parametrize(("unit", "high"), [("µg/m³", 10_000), ("mg/m³", 1000)])
def test_pollution_bounds(unit: str, high: float) -> None:
    validate_reading("pollution", PollutionReading(sensorId="p1", level=0, unit=unit))
    validate_reading("pollution", PollutionReading(sensorId="p1", level=high, unit=unit))
    with pytest.raises(OutOfRangeError):
        validate_reading("pollution", PollutionReading(sensorId="p1", level=-0.1, unit=unit))


def test_out_of_range_carries_details() -> None:
    record = _record(temperature={"sensorId": "t1", "value": -300, "unit": "°C"})

    with pytest.raises(OutOfRangeError) as exc_info:
        validate_record(record)

    err = exc_info.value
    assert err.kind == "out_of_range"
    assert err.sub_reading == "temperature"
    assert err.value == -300
    assert err.unit == "°C"
    assert err.min == -273.15
    assert err.max == 1000


@pytest.mark.parametrize(
    ("sub_reading", "payload"),
    [
        ("emissions", {"sensorId": "s1", "amount": 1, "unit": "lbCO2"}),
        ("temperature", {"sensorId": "t1", "value": 1, "unit": "celsius"}),
        ("pollution", {"sensorId": "p1", "level": 1, "unit": "ppm"}),
        # Valid unit, but for a different sub-reading
        ("pollution", {"sensorId": "p1", "level": 1, "unit": "K"}),
    ],
)
def test_unknown_unit_rejected(sub_reading: str, payload: dict[str, object]) -> None:
    with pytest.raises(InvalidUnitError) as exc_info:
        validate_record(_record(**{sub_reading: payload}))
    assert exc_info.value.sub_reading == sub_reading
    assert exc_info.value.unit == payload["unit"]
    assert exc_info.value.to_dict()["kind"] == "invalid_unit"


def test_nan_is_out_of_range() -> None:
    with pytest.raises(OutOfRangeError):
        validate_reading("emissions", EmissionReading(sensorId="s1", amount=math.nan, unit="tCO2"))


def test_absent_sub_readings_are_skipped() -> None:
    validate_record(_record())
    validate_record(_record(pollution={"sensorId": "p1", "level": 12.5, "unit": "µg/m³"}))


def test_first_error_follows_fixed_order() -> None:
    record = _record(
        emissions={"sensorId": "s1", "amount": -1, "unit": "tCO2"},
        temperature={"sensorId": "t1", "value": 20, "unit": "bogus"},
        pollution={"sensorId": "p1", "level": -5, "unit": "mg/m³"},
    )
    with pytest.raises(RecordValidationError) as exc_info:
        validate_record(record)
    assert isinstance(exc_info.value, OutOfRangeError)
    assert exc_info.value.sub_reading == "emissions"

    record = _record(
        temperature={"sensorId": "t1", "value": 20, "unit": "bogus"},
        pollution={"sensorId": "p1", "level": -5, "unit": "mg/m³"},
    )
    with pytest.raises(InvalidUnitError):
        validate_record(record)


def test_custom_range_table_is_used() -> None:
    strict = build_range_table({**{u: (r.min, r.max) for u, r in DEFAULT_RANGE_TABLE.items()}, "tCO2": (0, 10)})
    record = _record(emissions={"sensorId": "s1", "amount": 11, "unit": "tCO2"})

    validate_record(record)
    with pytest.raises(OutOfRangeError):
        validate_record(record, strict)


def test_unit_missing_from_range_table_is_invalid() -> None:
    partial = build_range_table({"tCO2": (0, 10)})
    with pytest.raises(InvalidUnitError):
        validate_record(_record(emissions={"sensorId": "s1", "amount": 1, "unit": "kgCO2"}), partial)


def test_range_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        DEFAULT_RANGE_TABLE["tCO2"] = DEFAULT_RANGE_TABLE["K"]  # type: ignore[index]


def test_build_range_table_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        build_range_table({"K": (10, 0)})
