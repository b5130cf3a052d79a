# ABOUTME: Parses raw game telemetry into typed events and removes spam clicks.
# ABOUTME: Validates per-event payloads before the metrics pass consumes them.

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, List, Mapping

from src.common.errors import EventPayloadError
from src.common.schemas import EventValue, RawEvent

# Payload keys arrive in camelCase from the browser and snake_case from exports.
_KEY_ALIASES = {
    "isTarget": "is_target",
    "responseTime": "response_time_ms",
    "response_time": "response_time_ms",
}
_TYPED_KEYS = {"correct", "is_target", "response_time_ms"}


def parse_event_value(payload: Any) -> EventValue:
    """Build an EventValue from the opaque payload a game attached to an event."""

    if payload is None:
        return EventValue()
    if isinstance(payload, EventValue):
        return payload
    if not isinstance(payload, Mapping):
        raise EventPayloadError(f"Event payload must be a mapping, got {type(payload).__name__}.")

    normalized = {_KEY_ALIASES.get(key, key): value for key, value in payload.items()}

    correct = normalized.get("correct", False)
    if correct is not None and not isinstance(correct, (bool, int)):
        raise EventPayloadError(f"'correct' must be a boolean, got {correct!r}.")

    is_target = normalized.get("is_target")
    if is_target is not None and not isinstance(is_target, (bool, int)):
        raise EventPayloadError(f"'isTarget' must be a boolean, got {is_target!r}.")

    response_time = normalized.get("response_time_ms")
    if response_time is not None:
        if isinstance(response_time, bool) or not isinstance(response_time, (int, float)):
            raise EventPayloadError(f"'responseTime' must be numeric, got {response_time!r}.")
        response_time = int(response_time)

    extra = {key: value for key, value in normalized.items() if key not in _TYPED_KEYS}
    return EventValue(
        correct=bool(correct),
        is_target=None if is_target is None else bool(is_target),
        response_time_ms=response_time,
        extra=MappingProxyType(extra),
    )


def parse_raw_event(record: Any) -> RawEvent:
    """Accept a RawEvent or a {timestamp, type, value} mapping."""

    if isinstance(record, RawEvent):
        return record
    if not isinstance(record, Mapping):
        raise EventPayloadError(f"Event must be a mapping, got {type(record).__name__}.")
    try:
        timestamp = record["timestamp"]
        event_type = record["type"]
    except KeyError as exc:
        raise EventPayloadError(f"Event is missing required field {exc.args[0]!r}.") from exc
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise EventPayloadError(f"Event timestamp must be numeric milliseconds, got {timestamp!r}.")
    return RawEvent(
        timestamp=int(timestamp),
        type=str(event_type),
        value=parse_event_value(record.get("value")),
    )


def parse_raw_events(records: Iterable[Any]) -> List[RawEvent]:
    return [parse_raw_event(record) for record in records]


def denoise_events(events: Iterable[RawEvent], spam_threshold_ms: int = 100) -> List[RawEvent]:
    """
    Drop spam/duplicate events.

    The first event is always kept. Each later event is kept only if it lands
    more than ``spam_threshold_ms`` after the previously kept event, which
    makes the filter idempotent.
    """

    kept: List[RawEvent] = []
    for event in events:
        if not kept or event.timestamp - kept[-1].timestamp > spam_threshold_ms:
            kept.append(event)
    return kept
