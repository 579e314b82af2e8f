from django.urls import re_path

from .apps import get_registry
from .consumers import RoomConsumer

websocket_urlpatterns = [
    re_path(r"ws/rooms/(?P<code>[A-Za-z0-9]+)/?$", RoomConsumer.as_asgi(registry=get_registry())),
]
