from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Final


class EmissionUnit(StrEnum):
    TONNES_CO2 = "tCO2"
    KILOGRAMS_CO2 = "kgCO2"
    GRAMS_CO2 = "gCO2"


class TemperatureUnit(StrEnum):
    CELSIUS = "°C"
    FAHRENHEIT = "°F"
    KELVIN = "K"


class PollutionUnit(StrEnum):
    MICROGRAMS_PER_M3 = "µg/m³"
    MILLIGRAMS_PER_M3 = "mg/m³"


@dataclass(frozen=True)
class UnitRange:
    """Inclusive numeric bound for a single unit."""

    min: float
    max: float

    def contains(self, value: float) -> bool:
        # NaN fails both comparisons
        return self.min <= value <= self.max


RangeTable = Mapping[str, UnitRange]

# Sub-reading name -> closed set of unit values accepted for it
SUB_READING_UNITS: Final[Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        "emissions": frozenset(u.value for u in EmissionUnit),
        "temperature": frozenset(u.value for u in TemperatureUnit),
        "pollution": frozenset(u.value for u in PollutionUnit),
    }
)


def build_range_table(bounds: Mapping[str, tuple[float, float]]) -> RangeTable:
    """Freeze a unit -> (min, max) mapping into a read-only range table."""
    table: dict[str, UnitRange] = {}
    for unit, (low, high) in bounds.items():
        if low > high:
            raise ValueError(f"Invalid range for {unit}: {low} > {high}")
        table[str(unit)] = UnitRange(min=float(low), max=float(high))
    return MappingProxyType(table)


DEFAULT_RANGE_TABLE: Final[RangeTable] = build_range_table(
    {
        EmissionUnit.TONNES_CO2: (0, 1_000_000_000),
        EmissionUnit.KILOGRAMS_CO2: (0.01, 10_000_000),
        EmissionUnit.GRAMS_CO2: (0.001, 10_000_000),
        TemperatureUnit.CELSIUS: (-273.15, 1000),
        TemperatureUnit.FAHRENHEIT: (-459.67, 1800),
        TemperatureUnit.KELVIN: (0, 1500),
        PollutionUnit.MICROGRAMS_PER_M3: (0, 10_000),
        PollutionUnit.MILLIGRAMS_PER_M3: (0, 1000),
    }
)
