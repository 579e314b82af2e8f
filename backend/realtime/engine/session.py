"""Authoritative per-room game state.

Reducers (``join``, ``start_game``, ``select_word``, ``guess``, ``disconnect``,
``tick``) mutate the session and return the outbound messages the change
produces. They raise ``IllegalTransition`` for events that do not apply;
``handle`` is the serialized entry point that takes the room lock, drops
illegal events and publishes the result.
"""
from __future__ import annotations

import asyncio
import functools
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Hashable, List, Optional

from . import guessing, hints, rotation
from .errors import IllegalTransition, InvariantViolation, RoomFull
from .events import (
    Audience,
    ClearCanvas,
    Disconnect,
    DrawingStroke,
    Guess,
    Join,
    Notice,
    NoticeKind,
    Outbound,
    SelectWord,
    StartGame,
    Topic,
)
from .rules import GameRules, RoomConfig
from .timer import AsyncioScheduler, BaseScheduler, TimerHandle
from .words import WORDS, pick_word_options

logger = logging.getLogger(__name__)

Publisher = Callable[[str, List[Outbound]], Awaitable[None]]


class Phase:
    LOBBY = "lobby"
    SELECTING_WORD = "selecting_word"
    DRAWING = "drawing"
    ROUND_END = "round_end"
    GAME_END = "game_end"


@dataclass
class PlayerSession:
    id: Hashable
    username: str
    avatar: str = ""
    score: int = 0
    connected: bool = True
    connection_ref: Optional[str] = None
    has_guessed: bool = False

    def public(self) -> Dict:
        return {"id": self.id, "username": self.username, "avatar": self.avatar}


class RoomSession:
    def __init__(
        self,
        room: RoomConfig,
        *,
        rules: Optional[GameRules] = None,
        scheduler: Optional[BaseScheduler] = None,
        publish: Optional[Publisher] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        words=WORDS,
        strict: bool = False,
    ):
        self.room = room
        self.code = room.code
        self.host_id = room.host_id
        self.rules = rules or GameRules()
        self.scheduler = scheduler or AsyncioScheduler(self.rules.tick_seconds)
        self.publish = publish
        self.rng = rng or random.Random()
        self.clock = clock
        self.words = words
        self.strict = strict
        self.lock = asyncio.Lock()

        self.phase = Phase.LOBBY
        self.round = 0
        self.drawer_index = 0
        self.drawer_id: Optional[Hashable] = None
        self.secret_word: Optional[str] = None
        self.hint_mask: hints.Mask = ()
        self.word_options: List[str] = []
        self.time_remaining: Optional[int] = None
        self.phase_duration = 0
        self.players: Dict[Hashable, PlayerSession] = {}
        self.active_timer: Optional[TimerHandle] = None
        self.timer_generation = 0
        self.advance_pending = False

    # Views

    def connected_players(self) -> List[PlayerSession]:
        return [player for player in self.players.values() if player.connected]

    def connected_ids(self) -> List[Hashable]:
        return [player.id for player in self.connected_players()]

    @property
    def hint(self) -> str:
        return hints.render_hint(self.secret_word, self.hint_mask)

    def knowers(self) -> List[Hashable]:
        """Players allowed to see the secret word while the round is running."""
        ids = [pid for pid, player in self.players.items() if player.has_guessed]
        if self.drawer_id is not None:
            ids.append(self.drawer_id)
        return ids

    def word_visible_to(self, viewer_id: Optional[Hashable]) -> bool:
        if self.secret_word is None:
            return False
        if self.phase in (Phase.ROUND_END, Phase.GAME_END):
            return True
        return viewer_id is not None and viewer_id == self.drawer_id

    def scores(self) -> Dict[str, int]:
        return {str(pid): player.score for pid, player in self.players.items()}

    def final_scores(self) -> List[Dict]:
        ranked = sorted(self.players.values(), key=lambda player: player.score, reverse=True)
        return [{**player.public(), "score": player.score} for player in ranked]

    def public_state(self, viewer_id: Optional[Hashable] = None) -> Dict:
        payload = {
            "code": self.code,
            "phase": self.phase,
            "round": self.round,
            "round_count": self.room.round_count,
            "round_time": self.room.round_time,
            "max_players": self.room.max_players,
            "host_id": self.host_id,
            "drawer_id": self.drawer_id,
            "hint": self.hint,
            "seconds_left": self.time_remaining,
            "players": [
                {
                    **player.public(),
                    "score": player.score,
                    "connected": player.connected,
                    "is_drawer": player.id == self.drawer_id,
                    "has_guessed": player.has_guessed,
                }
                for player in self.players.values()
            ],
        }
        if self.word_visible_to(viewer_id):
            payload["word"] = self.secret_word
        if (
            viewer_id is not None
            and viewer_id == self.drawer_id
            and self.phase == Phase.SELECTING_WORD
        ):
            payload["word_options"] = list(self.word_options)
        return payload

    def state_messages(self) -> List[Outbound]:
        if self.phase in (Phase.ROUND_END, Phase.GAME_END) or self.drawer_id is None:
            return [Outbound("game_state", self.public_state())]
        return [
            Outbound("game_state", self.public_state(), Audience.all_except(self.drawer_id)),
            Outbound("game_state", self.public_state(self.drawer_id), Audience.user(self.drawer_id)),
        ]

    def notice(self, kind: str, text: str, *, user=None, topic=None, audience=None) -> Outbound:
        stamp = int(self.clock() * 1000)
        item = Notice(kind=kind, text=text, timestamp=stamp, user=user, topic=topic)
        if audience is None:
            return item.to_outbound()
        return item.to_outbound(audience)

    # Event boundary

    async def handle(self, event) -> List[Outbound]:
        async with self.lock:
            try:
                outbound = self.reduce(event)
            except IllegalTransition as exc:
                logger.debug("room=%s dropped %s: %s", self.code, type(event).__name__, exc)
                return []
            await self.flush(outbound)
            return outbound

    def reduce(self, event) -> List[Outbound]:
        if isinstance(event, Join):
            return self.join(event.user_id, event.username, event.avatar, event.connection_ref)
        if isinstance(event, StartGame):
            return self.start_game(event.user_id)
        if isinstance(event, SelectWord):
            return self.select_word(event.user_id, event.word)
        if isinstance(event, Guess):
            return self.guess(event.user_id, event.text)
        if isinstance(event, Disconnect):
            return self.disconnect(event.user_id, event.connection_ref)
        if isinstance(event, DrawingStroke):
            return self.relay_stroke(event.user_id, event.payload)
        if isinstance(event, ClearCanvas):
            return self.relay_clear(event.user_id)
        raise IllegalTransition(f"Unknown event {event!r}")

    async def flush(self, outbound: List[Outbound]) -> None:
        if outbound and self.publish is not None:
            await self.publish(self.code, outbound)

    # Membership

    def join(self, user_id, username: str, avatar: str = "", connection_ref=None) -> List[Outbound]:
        player = self.players.get(user_id)
        if player is not None and player.connected and player.connection_ref == connection_ref:
            return [Outbound("game_state", self.public_state(user_id), Audience.user(user_id))]

        if player is None or not player.connected:
            if len(self.connected_players()) >= self.room.max_players:
                raise RoomFull(f"Room {self.code} is full.")

        rejoined = player is not None
        if player is None:
            player = PlayerSession(id=user_id, username=username, avatar=avatar or "")
            self.players[user_id] = player
        else:
            player.username = username or player.username
            player.avatar = avatar or player.avatar
        player.connected = True
        player.connection_ref = connection_ref

        if self.host_id is None:
            self.host_id = user_id

        verb = "rejoined" if rejoined else "joined"
        outbound = self.state_messages()
        outbound.append(
            self.notice(
                NoticeKind.SYSTEM,
                f"{player.username} {verb} the room!",
                user=player.public(),
                topic=Topic.JOIN,
            )
        )
        if user_id == self.drawer_id and self.phase == Phase.SELECTING_WORD:
            outbound.append(
                Outbound("word_choices", {"choices": list(self.word_options)}, Audience.user(user_id))
            )
        if self.advance_pending and self.phase == Phase.ROUND_END:
            outbound.extend(self._advance_rotation())
        return outbound

    def disconnect(self, user_id, connection_ref=None) -> List[Outbound]:
        player = self.players.get(user_id)
        if player is None or not player.connected:
            raise IllegalTransition("Player is not connected.")
        if connection_ref is not None and player.connection_ref != connection_ref:
            raise IllegalTransition("Stale connection.")

        player.connected = False
        player.connection_ref = None

        outbound = self.state_messages()
        outbound.append(
            self.notice(
                NoticeKind.SYSTEM,
                f"{player.username} disconnected.",
                user=player.public(),
                topic=Topic.LEAVE,
            )
        )
        if self.phase == Phase.DRAWING and user_id != self.drawer_id and self._all_guessed():
            outbound.extend(self._end_round("all_guessed"))
        return outbound

    # Game flow

    def start_game(self, user_id) -> List[Outbound]:
        if self.phase != Phase.LOBBY:
            raise IllegalTransition("Game already started.")
        connected = self.connected_players()
        if self.host_id not in self.players and connected:
            # The recorded host never attached; hand the room to the earliest arrival.
            self.host_id = connected[0].id
        if user_id != self.host_id:
            raise IllegalTransition("Only the host can start the game.")
        if len(connected) < self.rules.min_players:
            raise IllegalTransition("Not enough players to start.")

        turn = rotation.first_turn(self.connected_ids())
        self.round = turn.round
        self.drawer_index = turn.drawer_index
        for player in self.players.values():
            player.score = 0
        logger.info("room=%s game started with %d players", self.code, len(connected))
        return self._begin_selection(turn.drawer_id)

    def select_word(self, user_id, word: str) -> List[Outbound]:
        if self.phase != Phase.SELECTING_WORD:
            raise IllegalTransition("Not choosing a word.")
        if user_id != self.drawer_id:
            raise IllegalTransition("Only the drawer can choose the word.")
        if self.secret_word is not None:
            raise IllegalTransition("Word already chosen.")
        if word not in self.word_options:
            raise IllegalTransition("Word was not offered.")
        return self._begin_drawing(word)

    def guess(self, user_id, text: str) -> List[Outbound]:
        player = self.players.get(user_id)
        if player is None:
            raise IllegalTransition("Sender is not in the room.")
        message = (text or "").strip()
        if not message:
            raise IllegalTransition("Empty message.")

        chat = functools.partial(self.notice, NoticeKind.CHAT, message, user=player.public())

        if self.phase != Phase.DRAWING or self.secret_word is None:
            return [chat()]

        if user_id == self.drawer_id or player.has_guessed:
            if guessing.mentions_word(message, self.secret_word):
                return [chat(audience=Audience.users(self.knowers()))]
            return [chat()]

        result = guessing.evaluate_guess(message, self.secret_word)
        if result.is_exact:
            return self._correct_guess(player)
        if result.is_close:
            return [
                self.notice(
                    NoticeKind.CLOSE_GUESS,
                    f"{player.username} is close!",
                    user=player.public(),
                    audience=Audience.all_except(user_id),
                ),
                self.notice(
                    NoticeKind.CLOSE_GUESS,
                    f"'{message}' is close!",
                    user=player.public(),
                    audience=Audience.user(user_id),
                ),
            ]
        return [chat()]

    def relay_stroke(self, user_id, payload) -> List[Outbound]:
        player = self.players.get(user_id)
        if player is None:
            raise IllegalTransition("Sender is not in the room.")
        return [Outbound("draw", {"payload": payload, "user": player.public()}, Audience.all_except(user_id))]

    def relay_clear(self, user_id) -> List[Outbound]:
        player = self.players.get(user_id)
        if player is None:
            raise IllegalTransition("Sender is not in the room.")
        return [Outbound("clear", {"user": player.public()}, Audience.all_except(user_id))]

    # Timer

    def tick(self, generation: Optional[int] = None) -> List[Outbound]:
        if generation is not None and generation != self.timer_generation:
            return []
        if self.active_timer is None or self.time_remaining is None:
            return []

        outbound: List[Outbound] = []
        if self.time_remaining > 0:
            self.time_remaining -= 1
            outbound.append(Outbound("timer", {"seconds_left": self.time_remaining}))
            if self.phase == Phase.DRAWING:
                outbound.extend(self._maybe_reveal_hint())

        if self.time_remaining <= 0:
            self._cancel_timer()
            outbound.extend(self._expire_phase())
        return outbound

    async def on_timer(self, generation: int) -> None:
        async with self.lock:
            outbound = self.tick(generation)
            await self.flush(outbound)

    def cancel_timer(self) -> None:
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self.active_timer is not None:
            self.active_timer.cancel()
            self.active_timer = None
        self.timer_generation += 1

    def _start_timer(self, seconds: int) -> None:
        if self.active_timer is not None and self.active_timer.active:
            self._violation("timer already running while starting a new phase")
            self._cancel_timer()
        stale = [handle for handle in self.scheduler.live if handle is not self.active_timer]
        if stale:
            self._violation(f"{len(stale)} orphaned timer(s) still live")
            for handle in stale:
                handle.cancel()
        self.timer_generation += 1
        self.phase_duration = seconds
        self.time_remaining = seconds
        self.active_timer = self.scheduler.every(
            functools.partial(self.on_timer, self.timer_generation)
        )

    def _violation(self, message: str) -> None:
        if self.strict:
            raise InvariantViolation(f"room={self.code}: {message}")
        logger.error("room=%s invariant violated: %s", self.code, message)

    def _expire_phase(self) -> List[Outbound]:
        if self.phase == Phase.SELECTING_WORD:
            if self.secret_word is None and self.word_options:
                return self._begin_drawing(self.word_options[0])
            return []
        if self.phase == Phase.DRAWING:
            return self._end_round("time")
        if self.phase == Phase.ROUND_END:
            return self._advance_rotation()
        return []

    # Transitions

    def _begin_selection(self, drawer_id) -> List[Outbound]:
        self._cancel_timer()
        drawer = self.players.get(drawer_id)
        if drawer is None or not drawer.connected:
            self._violation(f"selected drawer {drawer_id!r} is not connected")
        self.phase = Phase.SELECTING_WORD
        self.drawer_id = drawer_id
        self.secret_word = None
        self.hint_mask = ()
        self.word_options = pick_word_options(self.rules.word_choices, self.rng, self.words)
        for player in self.players.values():
            player.has_guessed = False
        self._start_timer(self.rules.word_selection_seconds)

        drawer_name = drawer.username if drawer else str(drawer_id)
        outbound = self.state_messages()
        outbound.append(
            Outbound("word_choices", {"choices": list(self.word_options)}, Audience.user(drawer_id))
        )
        outbound.append(
            self.notice(
                NoticeKind.SYSTEM,
                f"Round {self.round} started! {drawer_name} is choosing a word.",
                topic=Topic.ROUND_START,
            )
        )
        return outbound

    def _begin_drawing(self, word: str) -> List[Outbound]:
        self._cancel_timer()
        self.phase = Phase.DRAWING
        self.secret_word = word
        self.hint_mask = hints.initial_mask(word)
        self._start_timer(self.room.round_time)

        drawer = self.players.get(self.drawer_id)
        drawer_name = drawer.username if drawer else "The drawer"
        outbound = self.state_messages()
        outbound.append(
            self.notice(NoticeKind.SYSTEM, f"{drawer_name} has chosen a word!", topic=Topic.WORD_CHOSEN)
        )
        return outbound

    def _maybe_reveal_hint(self) -> List[Outbound]:
        mask = hints.next_hint_mask(
            self.secret_word,
            self.hint_mask,
            self.time_remaining,
            self.phase_duration,
            rng=self.rng,
            fractions=self.rules.hint_fractions,
        )
        if mask == self.hint_mask:
            return []
        self.hint_mask = mask
        outbound = [Outbound("hint", {"hint": self.hint})]
        outbound.extend(self.state_messages())
        return outbound

    def _correct_guess(self, player: PlayerSession) -> List[Outbound]:
        points = guessing.guess_points(
            self.time_remaining,
            self.room.round_time,
            minimum=self.rules.min_guess_points,
            maximum=self.rules.max_guess_points,
        )
        player.score += points
        player.has_guessed = True
        drawer = self.players.get(self.drawer_id)
        if drawer is not None:
            drawer.score += self.rules.drawer_bonus

        outbound = [
            self.notice(
                NoticeKind.CORRECT_GUESS,
                f"{player.username} guessed the word! (+{points})",
                user=player.public(),
            ),
            Outbound(
                "guess_correct",
                {"user": player.public(), "points": points, "scores": self.scores()},
            ),
        ]
        outbound.extend(self.state_messages())
        if self._all_guessed():
            outbound.extend(self._end_round("all_guessed"))
        return outbound

    def _all_guessed(self) -> bool:
        guessers = [player for player in self.connected_players() if player.id != self.drawer_id]
        return bool(guessers) and all(player.has_guessed for player in guessers)

    def _end_round(self, reason: str) -> List[Outbound]:
        self._cancel_timer()
        self.phase = Phase.ROUND_END
        self.hint_mask = tuple(True for _ in self.secret_word or "")
        self._start_timer(self.rules.round_end_seconds)
        logger.info("room=%s round %d ended (%s)", self.code, self.round, reason)

        outbound = [
            self.notice(
                NoticeKind.SYSTEM,
                f"Round ended! The word was {self.secret_word}",
                topic=Topic.ROUND_END,
            ),
            Outbound(
                "round_end",
                {
                    "word": self.secret_word,
                    "scores": self.scores(),
                    "next_round_in": self.rules.round_end_seconds,
                    "reason": reason,
                },
            ),
        ]
        outbound.extend(self.state_messages())
        return outbound

    def _advance_rotation(self) -> List[Outbound]:
        turn = rotation.next_turn(self.connected_ids(), self.drawer_index, self.round)
        if turn is None:
            self._cancel_timer()
            self.time_remaining = None
            self.advance_pending = True
            logger.info("room=%s rotation deferred, nobody connected", self.code)
            return []
        self.advance_pending = False
        if turn.round > self.room.round_count:
            return self._finish_game()
        self.round = turn.round
        self.drawer_index = turn.drawer_index
        return self._begin_selection(turn.drawer_id)

    def _finish_game(self) -> List[Outbound]:
        self._cancel_timer()
        self.phase = Phase.GAME_END
        self.time_remaining = None
        self.drawer_id = None
        self.word_options = []
        logger.info("room=%s game over after %d rounds", self.code, self.round)

        outbound = self.state_messages()
        outbound.append(
            Outbound("game_over", {"scores": self.scores(), "final_scores": self.final_scores()})
        )
        outbound.append(self.notice(NoticeKind.SYSTEM, "Game over!", topic=Topic.GAME_END))
        return outbound
