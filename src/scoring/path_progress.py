# ABOUTME: Tracks progress through an assessment path of one or more games.
# ABOUTME: Pure value logic; storing paths is left to the persistence layer.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from src.common.schemas import GameType, game_name

from .normalize import round_half_up


@dataclass(frozen=True)
class PathProgress:
    completed: int
    total: int
    percentage: int
    next_game: Optional[str]


@dataclass(frozen=True)
class AssessmentPath:
    """Ordered target games and the games completed so far."""

    target_games: Tuple[str, ...]
    completed_games: Tuple[str, ...] = ()

    @classmethod
    def single(cls, game) -> "AssessmentPath":
        return cls(target_games=(game_name(game),))

    @classmethod
    def full(cls) -> "AssessmentPath":
        return cls(target_games=tuple(g.value for g in GameType))

    @property
    def is_complete(self) -> bool:
        return len(self.completed_games) == len(self.target_games)

    def next_game(self) -> Optional[str]:
        for game in self.target_games:
            if game not in self.completed_games:
                return game
        return None

    def record(self, game) -> "AssessmentPath":
        """Return a new path with ``game`` marked as completed."""
        name = game_name(game)
        if name not in self.target_games:
            raise ValueError(f"Game '{name}' is not part of this assessment path.")
        if name in self.completed_games:
            raise ValueError(f"Game '{name}' was already completed in this path.")
        return AssessmentPath(target_games=self.target_games, completed_games=self.completed_games + (name,))

    def progress(self) -> PathProgress:
        total = len(self.target_games)
        completed = len(self.completed_games)
        percentage = round_half_up(completed * 100 / total) if total else 0
        return PathProgress(completed=completed, total=total, percentage=percentage, next_game=self.next_game())
