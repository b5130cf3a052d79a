# ABOUTME: Tests raw event parsing and spam-click denoising.
# ABOUTME: Covers payload aliases, malformed input and idempotent filtering.

import pytest

from src.common.errors import EventPayloadError
from src.common.schemas import EventValue, RawEvent
from src.scoring.events import denoise_events, parse_event_value, parse_raw_event, parse_raw_events


def _clicks(timestamps):
    return [RawEvent(timestamp=ts, type="click", value=EventValue(correct=True)) for ts in timestamps]


def test_denoise_compares_against_last_kept_event():
    events = _clicks([0, 50, 120, 150, 260])

    kept = denoise_events(events, spam_threshold_ms=100)

    assert [e.timestamp for e in kept] == [0, 120, 260]


def test_denoise_drops_event_exactly_at_threshold():
    kept = denoise_events(_clicks([0, 100, 201]), spam_threshold_ms=100)
    assert [e.timestamp for e in kept] == [0, 201]


def test_denoise_is_idempotent():
    events = _clicks([0, 30, 90, 110, 400, 420, 530, 531, 900])

    once = denoise_events(events)
    twice = denoise_events(once)

    assert once == twice


def test_denoise_empty_stream():
    assert denoise_events([]) == []


def test_parse_event_value_accepts_camel_case_keys():
    value = parse_event_value({"correct": True, "isTarget": False, "responseTime": 420, "cell": 3})

    assert value.correct is True
    assert value.is_target is False
    assert value.response_time_ms == 420
    assert dict(value.extra) == {"cell": 3}


def test_parse_event_value_defaults_for_missing_payload():
    value = parse_event_value(None)
    assert value.correct is False
    assert value.is_target is None


@pytest.mark.parametrize(
    "payload",
    [
        "clicked",
        {"correct": "yes"},
        {"isTarget": "star"},
        {"responseTime": "fast"},
    ],
)
def test_parse_event_value_rejects_malformed_payloads(payload):
    with pytest.raises(EventPayloadError):
        parse_event_value(payload)


def test_parse_raw_event_from_mapping():
    event = parse_raw_event({"timestamp": 1200, "type": "select", "value": {"correct": 1}})

    assert event == RawEvent(timestamp=1200, type="select", value=EventValue(correct=True))
    assert event.is_attempt


def test_parse_raw_event_requires_timestamp_and_type():
    with pytest.raises(EventPayloadError):
        parse_raw_event({"type": "click"})
    with pytest.raises(EventPayloadError):
        parse_raw_event({"timestamp": "soon", "type": "click"})


def test_parse_raw_events_passes_typed_events_through():
    typed = _clicks([0])[0]
    parsed = parse_raw_events([typed, {"timestamp": 500, "type": "symbol_shown"}])

    assert parsed[0] is typed
    assert not parsed[1].is_attempt
