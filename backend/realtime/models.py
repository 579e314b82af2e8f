from django.conf import settings
from django.db import models

from .engine import RoomConfig


class Room(models.Model):
    code = models.CharField(max_length=8, unique=True)
    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="hosted_rooms",
    )
    max_players = models.PositiveSmallIntegerField(default=8)
    round_count = models.PositiveSmallIntegerField(default=3)
    round_time = models.PositiveSmallIntegerField(default=60)
    created_at = models.DateTimeField(auto_now_add=True)
    is_active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return self.code

    def to_config(self) -> RoomConfig:
        return RoomConfig(
            code=self.code,
            room_id=self.id,
            host_id=self.host_id,
            max_players=self.max_players,
            round_count=self.round_count,
            round_time=self.round_time,
        )
