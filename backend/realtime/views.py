import logging
import random
import string

from django.db import transaction
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .apps import get_registry
from .models import Room
from .serializers import CreateRoomSerializer, RoomCodeSerializer, RoomSerializer

CODE_LENGTH = 4
CODE_ALPHABET = string.ascii_uppercase
logger = logging.getLogger(__name__)


def generate_code() -> str:
    for _ in range(50):
        code = "".join(random.choices(CODE_ALPHABET, k=CODE_LENGTH))
        if not Room.objects.filter(code=code).exists():
            return code
    raise RuntimeError("Unable to generate unique room code.")


def session_summary(session):
    if session is None:
        return None
    return {
        "phase": session.phase,
        "round": session.round,
        "host_id": session.host_id,
        "connected_players": len(session.connected_players()),
    }


def room_session(room: Room):
    """The live session for ``room``, created on demand for rooms from an earlier process."""
    return get_registry().create(room.to_config())


class CreateRoomView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "room_create"

    def post(self, request):
        serializer = CreateRoomSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            room = Room.objects.create(
                code=generate_code(),
                host=request.user,
                **serializer.to_room_fields(),
            )
        room_session(room)
        logger.info("room=%s created by user=%s", room.code, request.user.id)
        return Response(
            {"code": room.code, "room": RoomSerializer(room).data},
            status=status.HTTP_201_CREATED,
        )


class RoomDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, code: str):
        room = Room.objects.filter(code=code.strip().upper(), is_active=True).first()
        if not room:
            return Response({"detail": "Room not found."}, status=status.HTTP_404_NOT_FOUND)
        data = RoomSerializer(room).data
        data["session"] = session_summary(get_registry().get(room.code))
        return Response(data)


class JoinRoomView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "room_join"

    def post(self, request):
        serializer = RoomCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        code = serializer.validated_data["code"]

        room = Room.objects.filter(code=code, is_active=True).first()
        if not room:
            return Response({"detail": "Room not found."}, status=status.HTTP_404_NOT_FOUND)

        session = room_session(room)
        player = session.players.get(request.user.id)
        already_in = player is not None and player.connected
        if not already_in and len(session.connected_players()) >= room.max_players:
            return Response({"detail": "Room is full."}, status=status.HTTP_400_BAD_REQUEST)

        data = RoomSerializer(room).data
        data["session"] = session_summary(session)
        return Response(data, status=status.HTTP_200_OK)
