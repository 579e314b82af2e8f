"""Inbound events consumed by a room session and the messages it emits."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Hashable, Iterable, Optional


# Inbound


@dataclass(frozen=True)
class Join:
    user_id: Hashable
    username: str
    avatar: str = ""
    connection_ref: Optional[str] = None


@dataclass(frozen=True)
class StartGame:
    user_id: Hashable


@dataclass(frozen=True)
class SelectWord:
    user_id: Hashable
    word: str


@dataclass(frozen=True)
class Guess:
    user_id: Hashable
    text: str


@dataclass(frozen=True)
class Disconnect:
    user_id: Hashable
    connection_ref: Optional[str] = None


@dataclass(frozen=True)
class DrawingStroke:
    user_id: Hashable
    payload: Any = None


@dataclass(frozen=True)
class ClearCanvas:
    user_id: Hashable


# Outbound


@dataclass(frozen=True)
class Audience:
    """Who receives a message: everyone, an explicit set, or everyone but a set."""

    only: Optional[FrozenSet[Hashable]] = None
    exclude: FrozenSet[Hashable] = field(default_factory=frozenset)

    @classmethod
    def everyone(cls) -> "Audience":
        return cls()

    @classmethod
    def users(cls, user_ids: Iterable[Hashable]) -> "Audience":
        return cls(only=frozenset(user_ids))

    @classmethod
    def user(cls, user_id: Hashable) -> "Audience":
        return cls(only=frozenset([user_id]))

    @classmethod
    def all_except(cls, *user_ids: Hashable) -> "Audience":
        return cls(exclude=frozenset(uid for uid in user_ids if uid is not None))

    def admits(self, user_id: Hashable) -> bool:
        if user_id in self.exclude:
            return False
        return self.only is None or user_id in self.only

    def to_dict(self) -> Dict[str, Any]:
        return {
            "only": None if self.only is None else sorted(self.only, key=str),
            "exclude": sorted(self.exclude, key=str),
        }

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "Audience":
        payload = payload or {}
        only = payload.get("only")
        return cls(
            only=None if only is None else frozenset(only),
            exclude=frozenset(payload.get("exclude") or []),
        )


EVERYONE = Audience.everyone()


@dataclass(frozen=True)
class Outbound:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    audience: Audience = EVERYONE

    def to_message(self) -> Dict[str, Any]:
        return {"type": self.type, **self.payload}


class NoticeKind:
    CHAT = "chat"
    SYSTEM = "system"
    CLOSE_GUESS = "close_guess"
    CORRECT_GUESS = "correct_guess"


class Topic:
    JOIN = "join"
    LEAVE = "leave"
    ROUND_START = "round_start"
    WORD_CHOSEN = "word_chosen"
    ROUND_END = "round_end"
    GAME_END = "game_end"


@dataclass(frozen=True)
class Notice:
    kind: str
    text: str
    timestamp: int
    user: Optional[Dict[str, Any]] = None
    topic: Optional[str] = None

    def to_outbound(self, audience: Audience = EVERYONE) -> Outbound:
        return Outbound(
            "chat",
            {
                "kind": self.kind,
                "message": self.text,
                "user": self.user,
                "system": self.kind != NoticeKind.CHAT,
                "topic": self.topic,
                "timestamp": self.timestamp,
            },
            audience,
        )
