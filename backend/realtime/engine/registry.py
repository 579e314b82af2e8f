from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Optional

from .errors import RoomNotFound
from .events import Disconnect
from .rules import GameRules, RoomConfig
from .session import Publisher, RoomSession
from .timer import AsyncioScheduler, BaseScheduler

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    """Process-wide map of room code to live session.

    Sessions are only removed through ``discard`` or ``shutdown``.
    """

    def __init__(
        self,
        publish: Optional[Publisher] = None,
        *,
        scheduler_factory: Callable[[float], BaseScheduler] = AsyncioScheduler,
        rules: Optional[GameRules] = None,
        strict: bool = False,
        rng_factory: Callable[[], random.Random] = random.Random,
    ):
        self.publish = publish
        self.scheduler_factory = scheduler_factory
        self.rules = rules or GameRules()
        self.strict = strict
        self.rng_factory = rng_factory
        self._sessions: Dict[str, RoomSession] = {}

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def codes(self):
        return list(self._sessions)

    def create(self, room: RoomConfig) -> RoomSession:
        code = normalize_code(room.code)
        session = self._sessions.get(code)
        if session is not None:
            return session
        if room.code != code:
            room = RoomConfig(
                code=code,
                room_id=room.room_id,
                host_id=room.host_id,
                max_players=room.max_players,
                round_count=room.round_count,
                round_time=room.round_time,
            )
        session = RoomSession(
            room,
            rules=self.rules,
            scheduler=self.scheduler_factory(self.rules.tick_seconds),
            publish=self.publish,
            rng=self.rng_factory(),
            strict=self.strict,
        )
        self._sessions[code] = session
        logger.info("room=%s session created", code)
        return session

    def get(self, code: str) -> Optional[RoomSession]:
        return self._sessions.get(normalize_code(code))

    def require(self, code: str) -> RoomSession:
        session = self.get(code)
        if session is None:
            raise RoomNotFound(normalize_code(code))
        return session

    def session_for_connection(self, connection_ref: str) -> Optional[RoomSession]:
        for session in self._sessions.values():
            for player in session.players.values():
                if player.connected and player.connection_ref == connection_ref:
                    return session
        return None

    async def disconnect_connection(self, connection_ref: str):
        """Mark whichever player owns ``connection_ref`` as disconnected."""
        session = self.session_for_connection(connection_ref)
        if session is None:
            return []
        for player in session.players.values():
            if player.connection_ref == connection_ref:
                return await session.handle(Disconnect(player.id, connection_ref))
        return []

    def discard(self, code: str) -> Optional[RoomSession]:
        session = self._sessions.pop(normalize_code(code), None)
        if session is not None:
            session.cancel_timer()
            session.scheduler.cancel_all()
            logger.info("room=%s session discarded", session.code)
        return session

    def shutdown(self) -> None:
        for code in list(self._sessions):
            self.discard(code)
