# ABOUTME: Extracts aggregate session metrics from a raw game event stream.
# ABOUTME: Computes accuracy, latency samples, hesitations and game-specific extras in one pass.

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np

from src.common.config import ScoringConfig, default_config
from src.common.errors import InsufficientDataError
from src.common.schemas import LEVEL_COMPLETE_EVENT, GameMetrics, GameType, RawEvent

from .events import denoise_events, parse_raw_events

logger = logging.getLogger(__name__)


def extract_metrics(
    raw_events: Sequence[Any],
    game_type,
    config: Optional[ScoringConfig] = None,
) -> GameMetrics:
    """
    Compute GameMetrics for one session.

    The minimum-event check runs on the raw stream, before denoising, so
    sparse sessions are rejected instead of silently degraded.
    """

    config = config or default_config()
    thresholds = config.thresholds

    if len(raw_events) < thresholds.min_events:
        raise InsufficientDataError(len(raw_events), thresholds.min_events)

    events = denoise_events(parse_raw_events(raw_events), thresholds.spam_threshold_ms)
    logger.debug("Denoised %d raw events to %d", len(raw_events), len(events))

    correct = 0
    total = 0
    hesitations = 0
    latencies: List[int] = []
    last_timestamp = events[0].timestamp

    for event in events:
        if event.is_attempt:
            total += 1
            if event.value.correct:
                correct += 1

            latency = event.timestamp - last_timestamp
            # Long gaps are pauses: excluded from the average but the attempt still counts.
            if 0 < latency < thresholds.max_latency_ms:
                latencies.append(latency)
            if latency > thresholds.hesitation_threshold_ms:
                hesitations += 1
        last_timestamp = event.timestamp

    accuracy = correct / total if total else 0.0
    avg_latency = float(np.mean(latencies)) if latencies else float(thresholds.fallback_latency_ms)

    extra: Dict[str, Any] = {}
    game = GameType.resolve(game_type)
    extractor = _EXTRA_EXTRACTORS.get(game)
    if extractor is not None:
        extra.update(extractor(events, total))

    return GameMetrics(
        accuracy=accuracy,
        avg_latency_ms=avg_latency,
        attempts=total,
        hesitations=hesitations,
        latency_samples=tuple(latencies),
        extra=MappingProxyType(extra),
    )


def _attention_extras(events: Iterable[RawEvent], total: int) -> Dict[str, Any]:
    false_positives = sum(1 for e in events if e.type == "click" and not e.value.is_target)
    return {
        "false_positives": false_positives,
        "false_positive_rate": false_positives / total if total else 0.0,
    }


def _logic_extras(events: Iterable[RawEvent], total: int) -> Dict[str, Any]:
    return {"level_reached": sum(1 for e in events if e.type == LEVEL_COMPLETE_EVENT)}


_EXTRA_EXTRACTORS: Dict[Optional[GameType], Callable[[Iterable[RawEvent], int], Dict[str, Any]]] = {
    GameType.ATTENTION: _attention_extras,
    GameType.LOGIC: _logic_extras,
}
