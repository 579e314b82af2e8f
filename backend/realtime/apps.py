from django.apps import AppConfig
from django.conf import settings


class RealtimeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "realtime"

    registry = None

    def ready(self):
        from .delivery import ChannelLayerPublisher
        from .engine import GameRules, RoomRegistry

        self.registry = RoomRegistry(
            publish=ChannelLayerPublisher(),
            rules=GameRules.from_settings(settings),
            strict=settings.DEBUG,
        )


def get_registry():
    from django.apps import apps

    return apps.get_app_config("realtime").registry
