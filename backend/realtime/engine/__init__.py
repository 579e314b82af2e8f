from .errors import GameError, IllegalTransition, InvariantViolation, RoomFull, RoomNotFound
from .events import (
    Audience,
    ClearCanvas,
    Disconnect,
    DrawingStroke,
    Guess,
    Join,
    NoticeKind,
    Outbound,
    SelectWord,
    StartGame,
)
from .registry import RoomRegistry, normalize_code
from .rules import GameRules, RoomConfig
from .session import Phase, PlayerSession, RoomSession
from .timer import AsyncioScheduler, ManualScheduler

__all__ = [
    "Audience",
    "AsyncioScheduler",
    "ClearCanvas",
    "Disconnect",
    "DrawingStroke",
    "GameError",
    "GameRules",
    "Guess",
    "IllegalTransition",
    "InvariantViolation",
    "Join",
    "ManualScheduler",
    "NoticeKind",
    "Outbound",
    "Phase",
    "PlayerSession",
    "RoomConfig",
    "RoomFull",
    "RoomNotFound",
    "RoomRegistry",
    "RoomSession",
    "SelectWord",
    "StartGame",
    "normalize_code",
]
