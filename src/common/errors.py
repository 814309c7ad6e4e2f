from typing import Any, ClassVar


class ClimateRecordError(Exception):
    """Base for all caller-facing failures; ``kind`` lets callers branch without string matching."""

    kind: ClassVar[str] = "climate_record_error"

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": str(self), **self.details()}


class RecordValidationError(ClimateRecordError):
    kind: ClassVar[str] = "validation"


class InvalidUnitError(RecordValidationError):
    kind: ClassVar[str] = "invalid_unit"

    def __init__(self, sub_reading: str, unit: str) -> None:
        super().__init__(f"Invalid {sub_reading} unit: {unit!r}")
        self.sub_reading = sub_reading
        self.unit = unit

    def details(self) -> dict[str, Any]:
        return {"subReading": self.sub_reading, "unit": self.unit}


class OutOfRangeError(RecordValidationError):
    kind: ClassVar[str] = "out_of_range"

    def __init__(self, sub_reading: str, value: float, unit: str, min: float, max: float) -> None:  # noqa: A002
        super().__init__(f"{sub_reading} value {value} {unit} is outside [{min}, {max}]")
        self.sub_reading = sub_reading
        self.value = value
        self.unit = unit
        self.min = min
        self.max = max

    def details(self) -> dict[str, Any]:
        return {
            "subReading": self.sub_reading,
            "value": self.value,
            "unit": self.unit,
            "min": self.min,
            "max": self.max,
        }


class MalformedRecordError(RecordValidationError):
    """Structural problem with the submitted fields (missing or mistyped values)."""

    kind: ClassVar[str] = "malformed_record"


class RecordNotFoundError(ClimateRecordError):
    kind: ClassVar[str] = "not_found"

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record {record_id} does not exist")
        self.record_id = record_id

    def details(self) -> dict[str, Any]:
        return {"recordId": self.record_id}


class DuplicateRecordError(ClimateRecordError):
    kind: ClassVar[str] = "duplicate_key"

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record {record_id} already exists")
        self.record_id = record_id

    def details(self) -> dict[str, Any]:
        return {"recordId": self.record_id}


class RecordDeserializationError(ClimateRecordError):
    kind: ClassVar[str] = "deserialization"

    def __init__(self, record_id: str, reason: str) -> None:
        super().__init__(f"Stored value for {record_id} could not be decoded: {reason}")
        self.record_id = record_id

    def details(self) -> dict[str, Any]:
        return {"recordId": self.record_id}


class StorageError(ClimateRecordError):
    """Underlying key-value store failure; the original exception is chained as ``__cause__``."""

    kind: ClassVar[str] = "storage"


class UnknownFunctionError(ClimateRecordError):
    kind: ClassVar[str] = "unknown_function"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown function: {name}")
        self.name = name

    def details(self) -> dict[str, Any]:
        return {"function": self.name}


class BadArgumentsError(ClimateRecordError):
    """Host call whose arguments do not fit the target function's signature."""

    kind: ClassVar[str] = "bad_request"
