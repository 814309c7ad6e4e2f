import inspect
import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger

from common.config import Settings, StoreBackend, load_settings
from common.errors import BadArgumentsError, ClimateRecordError, MalformedRecordError, UnknownFunctionError
from common.kvstore import DynamoDBKeyValueStore, InMemoryKeyValueStore, KeyValueStore
from common.record_store import ClimateRecordStore

logger = Logger()

# One in-process store per runtime so memory-backend writes survive across invocations
memory_kv = InMemoryKeyValueStore()

Primitive = str | int | float | None


@dataclass(frozen=True)
class TransactionContext:
    """Per-invocation handle the host passes to every registered function."""

    store: ClimateRecordStore


FUNCTIONS: dict[str, Callable[..., Any]] = {}


def register(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        FUNCTIONS[name] = fn
        return fn

    return decorator


def _is_blank(value: Primitive) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _parse_number(name: str, raw: Primitive) -> float:
    if isinstance(raw, bool):
        raise MalformedRecordError(f"{name} must be numeric, got {raw!r}")
    try:
        return float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise MalformedRecordError(f"{name} must be numeric, got {raw!r}") from e


def _sub_reading(
    name: str, sensor_id: Primitive, measure_field: str, measure: Primitive, unit: Primitive
) -> dict[str, Any] | None:
    # Blank sensor id and measure together mean the device did not report this reading
    if _is_blank(sensor_id) and _is_blank(measure):
        return None
    return {
        "sensorId": "" if sensor_id is None else str(sensor_id),
        measure_field: _parse_number(f"{name}.{measure_field}", measure),
        "unit": "" if unit is None else str(unit),
    }


def _fields_from_args(
    device_id: str,
    emission_sensor_id: Primitive,
    emission_amount: Primitive,
    emission_unit: Primitive,
    temperature_sensor_id: Primitive,
    temperature_value: Primitive,
    temperature_unit: Primitive,
    pollution_sensor_id: Primitive,
    pollution_level: Primitive,
    pollution_unit: Primitive,
    timestamp: Primitive,
) -> dict[str, Any]:
    fields: dict[str, Any] = {"deviceId": device_id}
    if not _is_blank(timestamp):
        fields["timestamp"] = str(timestamp)
    readings = {
        "emissions": _sub_reading("emissions", emission_sensor_id, "amount", emission_amount, emission_unit),
        "temperature": _sub_reading(
            "temperature", temperature_sensor_id, "value", temperature_value, temperature_unit
        ),
        "pollution": _sub_reading("pollution", pollution_sensor_id, "level", pollution_level, pollution_unit),
    }
    fields.update({k: v for k, v in readings.items() if v is not None})
    return fields


@register("addRecord")
def add_record(
    ctx: TransactionContext,
    device_id: str,
    emission_sensor_id: Primitive,
    emission_amount: Primitive,
    emission_unit: Primitive,
    temperature_sensor_id: Primitive,
    temperature_value: Primitive,
    temperature_unit: Primitive,
    pollution_sensor_id: Primitive,
    pollution_level: Primitive,
    pollution_unit: Primitive,
    timestamp: Primitive,
    record_id: str = "",
) -> str:
    fields = _fields_from_args(
        device_id,
        emission_sensor_id,
        emission_amount,
        emission_unit,
        temperature_sensor_id,
        temperature_value,
        temperature_unit,
        pollution_sensor_id,
        pollution_level,
        pollution_unit,
        timestamp,
    )
    if record_id:
        fields["recordId"] = record_id
    return ctx.store.create(fields)


@register("updateRecord")
def update_record(
    ctx: TransactionContext,
    record_id: str,
    device_id: str,
    emission_sensor_id: Primitive,
    emission_amount: Primitive,
    emission_unit: Primitive,
    temperature_sensor_id: Primitive,
    temperature_value: Primitive,
    temperature_unit: Primitive,
    pollution_sensor_id: Primitive,
    pollution_level: Primitive,
    pollution_unit: Primitive,
    timestamp: Primitive,
) -> None:
    fields = _fields_from_args(
        device_id,
        emission_sensor_id,
        emission_amount,
        emission_unit,
        temperature_sensor_id,
        temperature_value,
        temperature_unit,
        pollution_sensor_id,
        pollution_level,
        pollution_unit,
        timestamp,
    )
    ctx.store.update(record_id, fields)


@register("getRecord")
def get_record(ctx: TransactionContext, record_id: str) -> str:
    return ctx.store.get(record_id).model_dump_json(exclude_none=True)


@register("getAllRecords")
def get_all_records(ctx: TransactionContext) -> str:
    results: list[Any] = []
    for entry in ctx.store.iter_all():
        results.append(entry if isinstance(entry, str) else entry.model_dump(exclude_none=True))
    return json.dumps(results, ensure_ascii=False)


@register("recordExists")
def record_exists(ctx: TransactionContext, record_id: str) -> bool:
    return ctx.store.exists(record_id)


def invoke(ctx: TransactionContext, name: str, args: Sequence[Any] = ()) -> Any:
    """Dispatch a host call to the function registered under ``name``."""
    fn = FUNCTIONS.get(name)
    if fn is None:
        raise UnknownFunctionError(name)
    try:
        bound = inspect.signature(fn).bind(ctx, *args)
    except TypeError as e:
        raise BadArgumentsError(f"{name}: {e}") from e
    return fn(*bound.args, **bound.kwargs)


def build_kv_store(settings: Settings) -> KeyValueStore:
    if settings.store_backend == StoreBackend.MEMORY:
        return memory_kv
    return DynamoDBKeyValueStore(settings.records_table)


def build_context(settings: Settings | None = None) -> TransactionContext:
    settings = settings or load_settings()
    logger.setLevel(settings.log_level.value)
    return TransactionContext(store=ClimateRecordStore(build_kv_store(settings)))


@logger.inject_lambda_context
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    name = str(event.get("function", ""))
    args = event.get("args") or []

    ctx = build_context()
    try:
        if not isinstance(args, list):
            raise BadArgumentsError("args must be a list")
        result = invoke(ctx, name, args)
    except ClimateRecordError as err:
        logger.warning("climate contract call failed", function=name, kind=err.kind)
        return {"ok": False, "error": err.to_dict()}
    except Exception:
        logger.exception("Unhandled error while invoking climate contract", function=name)
        raise
    return {"ok": True, "result": result}
