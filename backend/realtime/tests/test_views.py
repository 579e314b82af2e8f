from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import PlayerProfile
from realtime.apps import get_registry
from realtime.models import Room

User = get_user_model()


@override_settings(ALLOWED_HOSTS=["testserver", "localhost", "127.0.0.1"])
class RoomApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.host = self._create_user("host", "Host")
        self.client.force_authenticate(user=self.host)

    def tearDown(self):
        for room in Room.objects.all():
            get_registry().discard(room.code)

    def _create_user(self, username, display_name):
        user = User.objects.create_user(username=username)
        PlayerProfile.objects.create(user=user, display_name=display_name)
        return user

    def test_create_room_registers_an_empty_session(self):
        response = self.client.post("/api/rooms/", {}, format="json")
        self.assertEqual(response.status_code, 201)

        body = response.json()
        code = body["code"]
        self.assertEqual(len(code), 4)
        self.assertTrue(code.isalpha() and code.isupper())
        self.assertEqual(body["room"]["host_id"], self.host.id)
        self.assertEqual(body["room"]["max_players"], 8)
        self.assertEqual(body["room"]["round_count"], 3)
        self.assertEqual(body["room"]["round_time"], 60)

        session = get_registry().get(code)
        self.assertIsNotNone(session)
        self.assertEqual(session.phase, "lobby")
        self.assertEqual(session.host_id, self.host.id)

    def test_create_room_with_custom_settings(self):
        response = self.client.post(
            "/api/rooms/",
            {"max_players": 4, "round_count": 5, "round_time": 90},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        room = Room.objects.get(code=response.json()["code"])
        self.assertEqual((room.max_players, room.round_count, room.round_time), (4, 5, 90))

    def test_create_room_rejects_out_of_range_round_time(self):
        response = self.client.post("/api/rooms/", {"round_time": 5}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("round_time", response.json())

    def test_requires_authentication(self):
        response = APIClient().post("/api/rooms/", {}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_room_detail(self):
        room = Room.objects.create(code="WXYZ", host=self.host)
        response = self.client.get("/api/rooms/wxyz/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["code"], "WXYZ")
        self.assertIsNone(response.json()["session"])

        get_registry().create(room.to_config())
        response = self.client.get("/api/rooms/WXYZ/")
        self.assertEqual(response.json()["session"]["phase"], "lobby")

    def test_room_detail_unknown(self):
        response = self.client.get("/api/rooms/NOPE/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Room not found.")

    def test_join_room(self):
        Room.objects.create(code="JOIN", host=self.host)
        response = self.client.post("/api/rooms/join/", {"code": " join "}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["code"], "JOIN")
        self.assertIn("JOIN", get_registry())

    def test_join_unknown_room(self):
        response = self.client.post("/api/rooms/join/", {"code": "NOPE"}, format="json")
        self.assertEqual(response.status_code, 404)

    def test_join_inactive_room(self):
        Room.objects.create(code="GONE", host=self.host, is_active=False)
        response = self.client.post("/api/rooms/join/", {"code": "GONE"}, format="json")
        self.assertEqual(response.status_code, 404)

    def test_join_full_room(self):
        room = Room.objects.create(code="FULL", host=self.host, max_players=2)
        session = get_registry().create(room.to_config())
        session.join(self.host.id, "Host", connection_ref="c1")
        other = self._create_user("other", "Other")
        session.join(other.id, "Other", connection_ref="c2")

        newcomer = self._create_user("late", "Late")
        client = APIClient()
        client.force_authenticate(user=newcomer)
        response = client.post("/api/rooms/join/", {"code": "FULL"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Room is full.")

        response = self.client.post("/api/rooms/join/", {"code": "FULL"}, format="json")
        self.assertEqual(response.status_code, 200)
