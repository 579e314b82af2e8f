from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class GameRules:
    word_selection_seconds: int = 15
    round_end_seconds: int = 5
    min_players: int = 2
    word_choices: int = 3
    tick_seconds: float = 1.0
    hint_fractions: Tuple[float, ...] = (0.5, 0.25)
    min_guess_points: int = 50
    max_guess_points: int = 100
    drawer_bonus: int = 5

    @classmethod
    def from_settings(cls, settings) -> "GameRules":
        return cls(
            word_selection_seconds=int(getattr(settings, "WORD_SELECTION_SECONDS", 15)),
            round_end_seconds=int(getattr(settings, "ROUND_END_SECONDS", 5)),
            min_players=int(getattr(settings, "MIN_PLAYERS_TO_START", 2)),
            word_choices=int(getattr(settings, "WORD_CHOICES_COUNT", 3)),
            tick_seconds=float(getattr(settings, "TIMER_TICK_SECONDS", 1.0)),
        )


@dataclass(frozen=True)
class RoomConfig:
    """Immutable view of the durable room record."""

    code: str
    room_id: Optional[int] = None
    host_id: Optional[int] = None
    max_players: int = 8
    round_count: int = 3
    round_time: int = 60
