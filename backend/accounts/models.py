import uuid

from django.conf import settings
from django.db import models


class ActiveSession(models.Model):
    """The one live login per user; tokens carry its id as the ``sid`` claim."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="active_session"
    )
    session_id = models.UUIDField(default=uuid.uuid4, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.user_id}:{self.session_id}"


class PlayerProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="player_profile"
    )
    display_name = models.CharField(max_length=32)
    avatar = models.CharField(max_length=255, blank=True)
    is_guest = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.user_id}:{self.display_name}"


def player_identity(user) -> dict:
    """Public ``{id, username, avatar}`` for a user, falling back to the auth username."""
    profile = getattr(user, "player_profile", None)
    if profile is None:
        return {"id": user.id, "username": user.get_username(), "avatar": ""}
    return {"id": user.id, "username": profile.display_name, "avatar": profile.avatar}
