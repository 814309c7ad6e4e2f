from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedRecordError


class _Reading(BaseModel):
    # Unknown keys in stored JSON are dropped on read
    model_config = ConfigDict(extra="ignore")

    sensorId: str
    # Kept as plain str so unknown units surface from the validator, not from parsing
    unit: str


class EmissionReading(_Reading):
    # Strict: bools and numeric strings are rejected, ints still accepted
    amount: float = Field(strict=True)


class TemperatureReading(_Reading):
    value: float = Field(strict=True)


class PollutionReading(_Reading):
    level: float = Field(strict=True)


class ClimateRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recordId: str
    deviceId: str = Field(min_length=1)
    timestamp: str | None = None
    emissions: EmissionReading | None = None
    temperature: TemperatureReading | None = None
    pollution: PollutionReading | None = None

    def to_json_bytes(self) -> bytes:
        """Serialize to the persisted UTF-8 JSON layout; absent fields are omitted."""
        return self.model_dump_json(exclude_none=True).encode("utf-8")

    @classmethod
    def from_json_bytes(cls, raw: bytes) -> "ClimateRecord":
        return cls.model_validate_json(raw)


def build_record(fields: dict[str, object]) -> ClimateRecord:
    """Assemble a record from wire-named fields, mapping pydantic errors to MalformedRecordError."""
    try:
        return ClimateRecord.model_validate(fields)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise MalformedRecordError(f"Malformed climate record: {problems}") from e
