import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from accounts.models import player_identity
from .delivery import room_group_name
from .engine import (
    Audience,
    ClearCanvas,
    DrawingStroke,
    Guess,
    Join,
    RoomFull,
    RoomNotFound,
    SelectWord,
    StartGame,
    normalize_code,
)
from .models import Room

logger = logging.getLogger(__name__)

CLOSE_UNAUTHENTICATED = 4401
CLOSE_ROOM_NOT_FOUND = 4404
CLOSE_ROOM_FULL = 4409

MAX_MESSAGE_LENGTH = 200


class RoomConsumer(AsyncJsonWebsocketConsumer):
    """One websocket per player per room; translates frames to engine events."""

    def __init__(self, *args, registry=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.registry = registry
        self.session = None
        self.user = None
        self.group_name = None

    async def connect(self):
        self.code = normalize_code(self.scope["url_route"]["kwargs"]["code"])
        user = self.scope.get("user")
        if not user or user.is_anonymous:
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        self.user = user
        await self.accept()
        try:
            session = await self.resolve_session(self.code)
        except RoomNotFound as exc:
            await self.reject(exc.reason, CLOSE_ROOM_NOT_FOUND)
            return

        identity = await self.get_identity(user)
        self.group_name = room_group_name(session.code)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        try:
            await session.handle(
                Join(
                    user_id=user.id,
                    username=identity["username"],
                    avatar=identity["avatar"],
                    connection_ref=self.channel_name,
                )
            )
        except RoomFull as exc:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            self.group_name = None
            await self.reject(exc.reason, CLOSE_ROOM_FULL)
            return
        self.session = session

    async def disconnect(self, close_code):
        if self.session is not None:
            await self.registry.disconnect_connection(self.channel_name)
            self.session = None
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        if self.session is None or not isinstance(content, dict):
            return
        message_type = content.get("type")
        if message_type == "ping":
            await self.send_json({"type": "pong"})
            return

        event = self.to_event(message_type, content)
        if event is None:
            logger.debug("room=%s ignoring frame type %r", self.code, message_type)
            return
        await self.session.handle(event)

    def to_event(self, message_type, content):
        user_id = self.user.id
        if message_type == "start_game":
            return StartGame(user_id=user_id)
        if message_type == "select_word":
            return SelectWord(user_id=user_id, word=str(content.get("word") or ""))
        if message_type in ("chat", "guess"):
            text = str(content.get("message") or "")[:MAX_MESSAGE_LENGTH]
            return Guess(user_id=user_id, text=text)
        if message_type == "draw":
            return DrawingStroke(user_id=user_id, payload=content.get("payload"))
        if message_type == "clear":
            return ClearCanvas(user_id=user_id)
        return None

    async def reject(self, reason: str, close_code: int):
        await self.send_json({"type": "error", "reason": reason})
        await self.close(code=close_code)

    async def resolve_session(self, code):
        session = self.registry.get(code)
        if session is not None:
            return session
        room = await self.get_room(code)
        if room is None:
            raise RoomNotFound(code)
        return self.registry.create(room.to_config())

    async def room_deliver(self, event):
        if self.user is None:
            return
        if not Audience.from_dict(event.get("audience")).admits(self.user.id):
            return
        await self.send_json(event["message"])

    @database_sync_to_async
    def get_room(self, code):
        return Room.objects.filter(code=code, is_active=True).first()

    @database_sync_to_async
    def get_identity(self, user):
        return player_identity(user)
