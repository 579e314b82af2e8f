from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import ActiveSession, PlayerProfile

User = get_user_model()


@override_settings(ALLOWED_HOSTS=["testserver", "localhost", "127.0.0.1"])
class GuestSessionTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()

    def _guest(self, username="SketchMaster", avatar="owl"):
        return self.client.post(
            "/api/auth/guest/",
            {"username": username, "avatar": avatar},
            format="json",
        )

    def test_guest_session_creates_player_and_cookies(self):
        response = self._guest()
        self.assertEqual(response.status_code, 201)
        self.assertIn("access_token", response.cookies)
        self.assertIn("refresh_token", response.cookies)
        self.assertEqual(response["Cache-Control"], "no-store")

        body = response.json()
        self.assertEqual(body["username"], "SketchMaster")
        self.assertEqual(body["avatar"], "owl")

        user = User.objects.get(id=body["id"])
        self.assertTrue(user.username.startswith("guest_"))
        self.assertFalse(user.has_usable_password())
        profile = PlayerProfile.objects.get(user=user)
        self.assertTrue(profile.is_guest)
        self.assertTrue(ActiveSession.objects.filter(user=user).exists())

        me = self.client.get("/api/auth/me/")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json(), body)

    def test_each_guest_session_is_a_new_player(self):
        first = self._guest("Twin").json()
        second = self._guest("Twin").json()
        self.assertNotEqual(first["id"], second["id"])

    def test_guest_username_is_validated(self):
        response = self._guest(username=" x ")
        self.assertEqual(response.status_code, 400)
        self.assertIn("username", response.json())
        self.assertEqual(User.objects.count(), 0)

    def test_request_id_is_echoed(self):
        response = self.client.post(
            "/api/auth/guest/",
            {"username": "Tracer"},
            format="json",
            HTTP_X_REQUEST_ID="abc123",
        )
        self.assertEqual(response["X-Request-ID"], "abc123")

    def test_refresh_and_logout_flow(self):
        self.assertEqual(self._guest("RefreshUser").status_code, 201)

        refresh_response = self.client.post("/api/auth/token/refresh/", {}, format="json")
        self.assertEqual(refresh_response.status_code, 200)
        self.assertIn("access_token", refresh_response.cookies)

        logout_response = self.client.post("/api/auth/logout/", {}, format="json")
        self.assertEqual(logout_response.status_code, 200)
        self.assertEqual(ActiveSession.objects.count(), 0)

        me_response = self.client.get("/api/auth/me/")
        self.assertEqual(me_response.status_code, 401)

    def test_refresh_without_cookie(self):
        response = self.client.post("/api/auth/token/refresh/", {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_new_session_invalidates_old_cookies(self):
        body = self._guest("Rotator").json()
        old_cookie = self.client.cookies["access_token"].value
        ActiveSession.objects.filter(user_id=body["id"]).delete()

        client = APIClient()
        client.cookies["access_token"] = old_cookie
        self.assertEqual(client.get("/api/auth/me/").status_code, 401)


@override_settings(ALLOWED_HOSTS=["testserver", "localhost", "127.0.0.1"])
class ProfileTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username="painter")
        PlayerProfile.objects.create(user=self.user, display_name="Painter", avatar="cat")
        self.client.force_authenticate(user=self.user)

    def test_get_and_update_profile(self):
        response = self.client.get("/api/auth/profile/")
        self.assertEqual(response.json(), {"display_name": "Painter", "avatar": "cat", "is_guest": True})

        response = self.client.put("/api/auth/profile/", {"display_name": "  Picasso  "}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["display_name"], "Picasso")
        self.assertEqual(response.json()["avatar"], "cat")

    def test_profile_name_validation(self):
        response = self.client.put("/api/auth/profile/", {"display_name": "P"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_profile_is_created_for_users_without_one(self):
        user = User.objects.create_user(username="plain")
        self.client.force_authenticate(user=user)
        response = self.client.get("/api/auth/profile/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["display_name"], "plain")
        self.assertFalse(response.json()["is_guest"])

    def test_user_detail(self):
        response = self.client.get(f"/api/auth/users/{self.user.id}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"id": self.user.id, "username": "Painter", "avatar": "cat"})

    def test_user_detail_unknown(self):
        response = APIClient().get("/api/auth/users/999999/")
        self.assertEqual(response.status_code, 404)
