from asgiref.sync import async_to_sync
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, override_settings
from django.urls import re_path
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.models import ActiveSession, PlayerProfile
from realtime.apps import get_registry
from realtime.consumers import MAX_MESSAGE_LENGTH, RoomConsumer
from realtime.delivery import ChannelLayerPublisher
from realtime.engine import ManualScheduler, Phase, RoomRegistry
from realtime.models import Room

User = get_user_model()

IN_MEMORY_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}


async def receive_type(communicator, message_type, limit=30):
    for _ in range(limit):
        message = await communicator.receive_json_from(timeout=2)
        if message.get("type") == message_type:
            return message
    raise AssertionError(f"no {message_type!r} message received")


@override_settings(
    ALLOWED_HOSTS=["testserver", "localhost", "127.0.0.1"],
    CHANNEL_LAYERS=IN_MEMORY_LAYERS,
)
class RoomConsumerTests(TestCase):
    def setUp(self):
        self.registry = RoomRegistry(publish=ChannelLayerPublisher(), scheduler_factory=ManualScheduler)
        self.application = URLRouter(
            [re_path(r"ws/rooms/(?P<code>[A-Za-z0-9]+)/?$", RoomConsumer.as_asgi(registry=self.registry))]
        )
        self.ann = self._create_user("ann", "Ann")
        self.bob = self._create_user("bob", "Bob")

    def tearDown(self):
        self.registry.shutdown()

    def _create_user(self, username, display_name):
        user = User.objects.create_user(username=username)
        PlayerProfile.objects.create(user=user, display_name=display_name, avatar="fox")
        return user

    def _communicator(self, code, user):
        communicator = WebsocketCommunicator(self.application, f"/ws/rooms/{code}/")
        communicator.scope["user"] = user
        return communicator

    def test_rejects_anonymous_connections(self):
        async def scenario():
            communicator = self._communicator("ABCD", AnonymousUser())
            connected, close_code = await communicator.connect()
            return connected, close_code

        connected, close_code = async_to_sync(scenario)()
        self.assertFalse(connected)
        self.assertEqual(close_code, 4401)

    def test_unknown_room(self):
        async def scenario():
            communicator = self._communicator("NOPE", self.ann)
            connected, _ = await communicator.connect()
            error = await communicator.receive_json_from(timeout=2)
            closed = await communicator.receive_output(timeout=2)
            await communicator.disconnect()
            return connected, error, closed

        connected, error, closed = async_to_sync(scenario)()
        self.assertTrue(connected)
        self.assertEqual(error, {"type": "error", "reason": "room_not_found"})
        self.assertEqual(closed["type"], "websocket.close")
        self.assertEqual(closed["code"], 4404)

    def test_full_room(self):
        Room.objects.create(code="SOLO", host=self.ann, max_players=1)

        async def scenario():
            first = self._communicator("SOLO", self.ann)
            await first.connect()
            await receive_type(first, "game_state")

            second = self._communicator("solo", self.bob)
            await second.connect()
            error = await receive_type(second, "error")
            closed = await second.receive_output(timeout=2)
            await second.disconnect()
            await first.disconnect()
            return error, closed

        error, closed = async_to_sync(scenario)()
        self.assertEqual(error["reason"], "room_full")
        self.assertEqual(closed["code"], 4409)

    def test_join_creates_session_from_room_record(self):
        Room.objects.create(code="LAZY", host=self.ann)

        async def scenario():
            communicator = self._communicator("lazy", self.ann)
            connected, _ = await communicator.connect()
            state = await receive_type(communicator, "game_state")
            notice = await receive_type(communicator, "chat")
            await communicator.send_json_to({"type": "ping"})
            pong = await receive_type(communicator, "pong")
            await communicator.disconnect()
            return connected, state, notice, pong

        connected, state, notice, pong = async_to_sync(scenario)()
        self.assertTrue(connected)
        self.assertEqual(state["code"], "LAZY")
        self.assertEqual(state["players"][0]["username"], "Ann")
        self.assertEqual(state["players"][0]["avatar"], "fox")
        self.assertEqual(notice["message"], "Ann joined the room!")
        self.assertEqual(pong, {"type": "pong"})

        session = self.registry.get("LAZY")
        self.assertFalse(session.players[self.ann.id].connected)

    def test_non_object_frames_are_ignored(self):
        Room.objects.create(code="JUNK", host=self.ann)

        async def scenario():
            communicator = self._communicator("JUNK", self.ann)
            await communicator.connect()
            await receive_type(communicator, "game_state")
            await communicator.send_json_to([1])
            await communicator.send_json_to("x")
            await communicator.send_json_to({"type": "ping"})
            pong = await receive_type(communicator, "pong")
            await communicator.disconnect()
            return pong

        self.assertEqual(async_to_sync(scenario)(), {"type": "pong"})

    def test_long_chat_is_truncated(self):
        Room.objects.create(code="LONG", host=self.ann)

        async def scenario():
            communicator = self._communicator("LONG", self.ann)
            await communicator.connect()
            await receive_type(communicator, "game_state")
            await communicator.send_json_to({"type": "chat", "message": "y" * 5000})
            chat = None
            while chat is None or chat.get("kind") != "chat":
                chat = await receive_type(communicator, "chat")
            await communicator.disconnect()
            return chat

        chat = async_to_sync(scenario)()
        self.assertEqual(chat["message"], "y" * MAX_MESSAGE_LENGTH)

    def test_game_flow_over_websockets(self):
        Room.objects.create(code="GAME", host=self.ann)

        async def scenario():
            ann = self._communicator("GAME", self.ann)
            bob = self._communicator("GAME", self.bob)
            await ann.connect()
            await bob.connect()

            await ann.send_json_to({"type": "start_game"})
            choices = await receive_type(ann, "word_choices")
            word = choices["choices"][0]
            await ann.send_json_to({"type": "select_word", "word": word})
            bob_state = None
            while bob_state is None or bob_state["phase"] != Phase.DRAWING:
                bob_state = await receive_type(bob, "game_state")

            await ann.send_json_to({"type": "draw", "payload": {"x": 1, "y": 2}})
            stroke = await receive_type(bob, "draw")

            await bob.send_json_to({"type": "guess", "message": word.upper()})
            correct = await receive_type(ann, "guess_correct")
            round_end = await receive_type(bob, "round_end")

            await ann.disconnect()
            await bob.disconnect()
            return bob_state, stroke, correct, round_end, word

        bob_state, stroke, correct, round_end, word = async_to_sync(scenario)()
        self.assertNotIn("word", bob_state)
        self.assertEqual(bob_state["hint"].replace("_", "").strip(), "")
        self.assertEqual(stroke["payload"], {"x": 1, "y": 2})
        self.assertEqual(stroke["user"]["id"], self.ann.id)
        self.assertEqual(correct["user"]["id"], self.bob.id)
        self.assertEqual(correct["points"], 100)
        self.assertEqual(round_end["word"], word)
        self.assertEqual(round_end["reason"], "all_guessed")


@override_settings(
    ALLOWED_HOSTS=["testserver", "localhost", "127.0.0.1"],
    CHANNEL_LAYERS=IN_MEMORY_LAYERS,
)
class WebsocketAuthTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="cookie")
        PlayerProfile.objects.create(user=self.user, display_name="Cookie")
        Room.objects.create(code="AUTH", host=self.user)

    def tearDown(self):
        get_registry().discard("AUTH")

    def _auth_cookie(self, user):
        session, _ = ActiveSession.objects.update_or_create(user=user)
        refresh = RefreshToken.for_user(user)
        refresh["sid"] = str(session.session_id)
        return f"{settings.JWT_ACCESS_COOKIE}={refresh.access_token}"

    async def _connect(self, cookie_header):
        from sketchparty.asgi import application

        headers = [(b"origin", b"http://localhost:3000")]
        if cookie_header:
            headers.append((b"cookie", cookie_header.encode("utf-8")))
        communicator = WebsocketCommunicator(application, "/ws/rooms/AUTH/", headers=headers)
        connected, detail = await communicator.connect()
        if connected:
            await communicator.disconnect()
            return connected, 1000
        return connected, detail

    def test_access_cookie_authenticates(self):
        connected, _ = async_to_sync(self._connect)(self._auth_cookie(self.user))
        self.assertTrue(connected)

    def test_missing_cookie_is_rejected(self):
        connected, close_code = async_to_sync(self._connect)("")
        self.assertFalse(connected)
        self.assertEqual(close_code, 4401)

    def test_rotated_session_is_rejected(self):
        cookie = self._auth_cookie(self.user)
        ActiveSession.objects.filter(user=self.user).delete()
        connected, close_code = async_to_sync(self._connect)(cookie)
        self.assertFalse(connected)
        self.assertEqual(close_code, 4401)
