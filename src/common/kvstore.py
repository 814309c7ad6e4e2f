import bisect
from collections.abc import Iterator
from typing import Any, Protocol

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from .errors import DuplicateRecordError, StorageError

logger = Logger()


class KeyValueStore(Protocol):
    """Ordered byte-oriented map the record store is written against."""

    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, value: bytes, *, if_absent: bool = False) -> None:
        """Write ``value``; with ``if_absent`` raise DuplicateRecordError instead of replacing a key."""
        ...

    def range_scan(self, start_key: str = "", end_key: str = "") -> Iterator[tuple[str, bytes]]:
        """Yield (key, value) in ascending key order; start inclusive, end exclusive, "" is unbounded."""
        ...


def _in_range(key: str, start_key: str, end_key: str) -> bool:
    if start_key and key < start_key:
        return False
    return not (end_key and key >= end_key)


class InMemoryKeyValueStore:
    """Sorted in-process map; reads see the latest put immediately."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = {}
        self._keys: list[str] = []
        for key, value in (initial or {}).items():
            self.put(key, value)

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def put(self, key: str, value: bytes, *, if_absent: bool = False) -> None:
        if if_absent and key in self._data:
            raise DuplicateRecordError(key)
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = bytes(value)

    def range_scan(self, start_key: str = "", end_key: str = "") -> Iterator[tuple[str, bytes]]:
        lo = bisect.bisect_left(self._keys, start_key) if start_key else 0
        hi = bisect.bisect_left(self._keys, end_key) if end_key else len(self._keys)
        # Snapshot the key slice so puts during iteration don't shift the cursor
        for key in self._keys[lo:hi]:
            yield key, self._data[key]


def get_dynamodb() -> Any:
    """Return DynamoDB resource to be used by the table-backed store."""
    return boto3.resource("dynamodb")


class DynamoDBKeyValueStore:
    """Key-value store over a DynamoDB table with string hash key ``pk`` and binary attribute ``value``.

    DynamoDB scans are unordered, so ``range_scan`` collects every page and sorts by key
    before yielding. Reads are strongly consistent.
    """

    KEY_ATTR = "pk"
    VALUE_ATTR = "value"

    def __init__(self, table_name: str, ddb: Any | None = None) -> None:
        self.table_name = table_name
        self._table = (ddb or get_dynamodb()).Table(table_name)

    @staticmethod
    def _as_bytes(raw: Any) -> bytes:
        # boto3 wraps binary attributes in boto3.dynamodb.types.Binary
        if hasattr(raw, "value"):
            raw = raw.value
        return bytes(raw)

    def get(self, key: str) -> bytes | None:
        try:
            resp = self._table.get_item(Key={self.KEY_ATTR: key}, ConsistentRead=True)
        except (ClientError, BotoCoreError) as e:
            logger.exception("dynamodb get_item failed", table=self.table_name, key=key)
            raise StorageError(f"get failed for key {key}: {e}") from e
        item = resp.get("Item")
        if item is None or self.VALUE_ATTR not in item:
            return None
        return self._as_bytes(item[self.VALUE_ATTR])

    def put(self, key: str, value: bytes, *, if_absent: bool = False) -> None:
        kwargs: dict[str, Any] = {"Item": {self.KEY_ATTR: key, self.VALUE_ATTR: bytes(value)}}
        if if_absent:
            kwargs["ConditionExpression"] = "attribute_not_exists(#k)"
            kwargs["ExpressionAttributeNames"] = {"#k": self.KEY_ATTR}
        try:
            self._table.put_item(**kwargs)
        except ClientError as ce:
            code = ce.response.get("Error", {}).get("Code", "")
            if if_absent and code == "ConditionalCheckFailedException":
                raise DuplicateRecordError(key) from ce
            logger.exception("dynamodb put_item failed", table=self.table_name, key=key)
            raise StorageError(f"put failed for key {key}: {ce}") from ce
        except BotoCoreError as e:
            logger.exception("dynamodb put_item failed", table=self.table_name, key=key)
            raise StorageError(f"put failed for key {key}: {e}") from e

    def range_scan(self, start_key: str = "", end_key: str = "") -> Iterator[tuple[str, bytes]]:
        entries: list[tuple[str, bytes]] = []
        scan_kwargs: dict[str, Any] = {"ConsistentRead": True}
        try:
            while True:
                resp = self._table.scan(**scan_kwargs)
                for item in resp.get("Items", []):
                    key = str(item[self.KEY_ATTR])
                    if _in_range(key, start_key, end_key):
                        entries.append((key, self._as_bytes(item.get(self.VALUE_ATTR, b""))))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            logger.exception("dynamodb scan failed", table=self.table_name)
            raise StorageError(f"range scan failed: {e}") from e
        entries.sort(key=lambda kv: kv[0])
        yield from entries
