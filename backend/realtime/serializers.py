from django.conf import settings
from rest_framework import serializers

from .models import Room


class RoomCodeSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=8)

    def validate_code(self, value):
        return value.strip().upper()


class CreateRoomSerializer(serializers.Serializer):
    max_players = serializers.IntegerField(required=False, min_value=2)
    round_count = serializers.IntegerField(required=False, min_value=1)
    round_time = serializers.IntegerField(required=False)

    def validate_max_players(self, value):
        if value > settings.MAX_PLAYERS_LIMIT:
            raise serializers.ValidationError(f"At most {settings.MAX_PLAYERS_LIMIT} players.")
        return value

    def validate_round_count(self, value):
        if value > settings.MAX_ROUND_COUNT:
            raise serializers.ValidationError(f"At most {settings.MAX_ROUND_COUNT} rounds.")
        return value

    def validate_round_time(self, value):
        if not settings.MIN_ROUND_TIME <= value <= settings.MAX_ROUND_TIME:
            raise serializers.ValidationError(
                f"Round time must be between {settings.MIN_ROUND_TIME} and {settings.MAX_ROUND_TIME} seconds."
            )
        return value

    def to_room_fields(self):
        data = self.validated_data
        return {
            "max_players": data.get("max_players", settings.DEFAULT_MAX_PLAYERS),
            "round_count": data.get("round_count", settings.DEFAULT_ROUND_COUNT),
            "round_time": data.get("round_time", settings.DEFAULT_ROUND_TIME),
        }


class RoomSerializer(serializers.ModelSerializer):
    host_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Room
        fields = ["id", "code", "host_id", "max_players", "round_count", "round_time", "created_at", "is_active"]
