import logging
import uuid

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken

from .models import ActiveSession, PlayerProfile
from .serializers import GuestSessionSerializer, PlayerProfileSerializer, PlayerSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


def _cookie_settings():
    return {
        "httponly": True,
        "secure": settings.JWT_COOKIE_SECURE,
        "samesite": settings.JWT_COOKIE_SAMESITE,
        "path": "/",
    }


def _set_access_cookie(response, access_token):
    max_age = int(settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"].total_seconds())
    response.set_cookie(settings.JWT_ACCESS_COOKIE, access_token, max_age=max_age, **_cookie_settings())


def _set_refresh_cookie(response, refresh_token):
    max_age = int(settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"].total_seconds())
    response.set_cookie(settings.JWT_REFRESH_COOKIE, refresh_token, max_age=max_age, **_cookie_settings())


def issue_session(response, user):
    """Rotate the user's active session and attach fresh JWT cookies to ``response``."""
    session, _ = ActiveSession.objects.update_or_create(
        user=user, defaults={"session_id": uuid.uuid4()}
    )
    refresh = RefreshToken.for_user(user)
    refresh["sid"] = str(session.session_id)
    _set_access_cookie(response, str(refresh.access_token))
    _set_refresh_cookie(response, str(refresh))
    return response


class GuestSessionView(APIView):
    """Create a throwaway player identity and sign it in."""

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_scope = "guest_session"

    def post(self, request):
        serializer = GuestSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            user = User(username=f"guest_{uuid.uuid4().hex}")
            user.set_unusable_password()
            user.last_login = timezone.now()
            user.save()
            PlayerProfile.objects.create(
                user=user, display_name=data["username"], avatar=data.get("avatar", "")
            )

        logger.info("guest user=%s created as %r", user.id, data["username"])
        response = Response(PlayerSerializer(user).data, status=status.HTTP_201_CREATED)
        return issue_session(response, user)


class CookieTokenRefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_scope = "guest_session"

    def post(self, request):
        refresh_token = request.COOKIES.get(settings.JWT_REFRESH_COOKIE) or request.data.get("refresh")
        if not refresh_token:
            return Response({"detail": "Refresh token missing."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            refresh = RefreshToken(refresh_token)
        except TokenError:
            return Response({"detail": "Invalid refresh token."}, status=status.HTTP_401_UNAUTHORIZED)

        session_id = refresh.get("sid")
        user_id = refresh.get(api_settings.USER_ID_CLAIM)
        active = ActiveSession.objects.filter(user_id=user_id).first()
        if not session_id or not active or str(active.session_id) != str(session_id):
            return Response({"detail": "Session expired."}, status=status.HTTP_401_UNAUTHORIZED)

        response = Response({"detail": "Token refreshed."})
        _set_access_cookie(response, str(refresh.access_token))
        return response


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        if request.user.is_authenticated:
            ActiveSession.objects.filter(user=request.user).delete()
        response = Response({"detail": "Logged out."})
        response.delete_cookie(settings.JWT_ACCESS_COOKIE, path="/")
        response.delete_cookie(settings.JWT_REFRESH_COOKIE, path="/")
        return response


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(PlayerSerializer(request.user).data)


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def _profile(self, user):
        profile, _ = PlayerProfile.objects.get_or_create(
            user=user, defaults={"display_name": user.get_username()[:32], "is_guest": False}
        )
        return profile

    def get(self, request):
        return Response(PlayerProfileSerializer(self._profile(request.user)).data)

    def put(self, request):
        profile = self._profile(request.user)
        serializer = PlayerProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class UserDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id: int):
        user = get_object_or_404(User.objects.select_related("player_profile"), id=user_id)
        return Response(PlayerSerializer(user).data)
