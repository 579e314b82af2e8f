from django.urls import path

from .views import CreateRoomView, JoinRoomView, RoomDetailView

urlpatterns = [
    path("", CreateRoomView.as_view(), name="room_create"),
    path("join/", JoinRoomView.as_view(), name="room_join"),
    path("<str:code>/", RoomDetailView.as_view(), name="room_detail"),
]
