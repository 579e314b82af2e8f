from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import PlayerProfile

User = get_user_model()


def _clean_name(value: str) -> str:
    name = " ".join(value.split())
    if len(name) < 2:
        raise serializers.ValidationError("Username must be at least 2 characters.")
    return name


class GuestSessionSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=32)
    avatar = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate_username(self, value):
        return _clean_name(value)


class PlayerSerializer(serializers.ModelSerializer):
    username = serializers.SerializerMethodField()
    avatar = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "avatar"]

    def _profile(self, obj):
        return getattr(obj, "player_profile", None)

    def get_username(self, obj):
        profile = self._profile(obj)
        return profile.display_name if profile else obj.get_username()

    def get_avatar(self, obj):
        profile = self._profile(obj)
        return profile.avatar if profile else ""


class PlayerProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlayerProfile
        fields = ["display_name", "avatar", "is_guest"]
        read_only_fields = ["is_guest"]

    def validate_display_name(self, value):
        return _clean_name(value)
