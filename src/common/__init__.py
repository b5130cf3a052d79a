# ABOUTME: Makes the shared common package importable across the scoring modules.
# ABOUTME: Re-exports schema types, errors and configuration loaders for convenience.

from .config import ScoringConfig, default_config, load_scoring_config
from .errors import ConfigError, EventPayloadError, InsufficientDataError, ScoringError
from .schemas import GameMetrics, GameScore, GameType, MiniReport, RawEvent, SubScores

__all__ = [
    "ScoringConfig",
    "default_config",
    "load_scoring_config",
    "ConfigError",
    "EventPayloadError",
    "InsufficientDataError",
    "ScoringError",
    "GameMetrics",
    "GameScore",
    "GameType",
    "MiniReport",
    "RawEvent",
    "SubScores",
]
