import hashlib
from collections.abc import Iterator, Mapping
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from .errors import DuplicateRecordError, MalformedRecordError, RecordDeserializationError, RecordNotFoundError
from .kvstore import KeyValueStore
from .models import ClimateRecord, build_record
from .units import DEFAULT_RANGE_TABLE, RangeTable
from .validation import validate_record

logger = Logger()


def derive_record_id(device_id: str, timestamp: str) -> str:
    """Content-derived identity: lowercase hex MD5 of deviceId followed by timestamp."""
    return hashlib.md5((device_id + timestamp).encode("utf-8"), usedforsecurity=False).hexdigest()


def _as_fields(fields: Mapping[str, Any] | ClimateRecord) -> dict[str, Any]:
    if isinstance(fields, ClimateRecord):
        return fields.model_dump(exclude_none=True)
    return dict(fields)


class ClimateRecordStore:
    """Validated access layer for climate records over an ordered key-value store.

    Each call performs at most one read and one write against the store and holds no
    locks. ``create`` writes with a put-if-absent, so a concurrent create of the same key
    fails with DuplicateRecordError; ``update`` has no such guard and the last write wins.
    """

    def __init__(self, kv: KeyValueStore, ranges: RangeTable = DEFAULT_RANGE_TABLE) -> None:
        self.kv = kv
        self.ranges = ranges

    def exists(self, record_id: str) -> bool:
        raw = self.kv.get(record_id)
        return raw is not None and len(raw) > 0

    def _resolve_id(self, fields: dict[str, Any]) -> str:
        record_id = fields.get("recordId")
        if record_id:
            return str(record_id)
        device_id = fields.get("deviceId")
        timestamp = fields.get("timestamp")
        if not device_id or not timestamp:
            raise MalformedRecordError("deviceId and timestamp are required to derive a recordId")
        return derive_record_id(str(device_id), str(timestamp))

    def create(self, fields: Mapping[str, Any] | ClimateRecord) -> str:
        """Validate and write a new record, returning its id.

        The id is taken from ``recordId`` when supplied, otherwise derived from
        ``deviceId`` + ``timestamp``. An existing key is never overwritten.
        """
        data = _as_fields(fields)
        record_id = self._resolve_id(data)
        record = build_record({**data, "recordId": record_id})
        validate_record(record, self.ranges)

        if self.exists(record_id):
            raise DuplicateRecordError(record_id)

        # Conditional so a concurrent create of the same key fails instead of overwriting
        self.kv.put(record_id, record.to_json_bytes(), if_absent=True)
        logger.info("climate record created", record_id=record_id, device_id=record.deviceId)
        return record_id

    def update(self, record_id: str, fields: Mapping[str, Any] | ClimateRecord) -> ClimateRecord:
        """Replace the whole record stored under ``record_id``; there is no partial merge."""
        if not self.exists(record_id):
            raise RecordNotFoundError(record_id)

        # The stored key wins over any recordId carried in the body
        record = build_record({**_as_fields(fields), "recordId": record_id})
        validate_record(record, self.ranges)

        self.kv.put(record_id, record.to_json_bytes())
        logger.info("climate record updated", record_id=record_id, device_id=record.deviceId)
        return record

    def get(self, record_id: str) -> ClimateRecord:
        raw = self.kv.get(record_id)
        if raw is None or len(raw) == 0:
            raise RecordNotFoundError(record_id)
        try:
            return ClimateRecord.from_json_bytes(raw)
        except ValidationError as e:
            raise RecordDeserializationError(record_id, f"{e.error_count()} validation error(s)") from e

    def iter_all(self) -> Iterator[ClimateRecord | str]:
        """Scan every key in ascending order.

        Values that do not decode to a record are yielded as their raw text instead
        of aborting the scan. Each call starts a fresh scan.
        """
        for key, raw in self.kv.range_scan("", ""):
            if not raw:
                # Empty values count as absent, same as exists()
                continue
            try:
                yield ClimateRecord.from_json_bytes(raw)
            except ValidationError:
                logger.warning("undecodable value in scan; returning raw text", key=key)
                yield raw.decode("utf-8", errors="replace")

    def list_all(self) -> list[ClimateRecord | str]:
        return list(self.iter_all())
