import logging
from http.cookies import SimpleCookie

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError
from rest_framework_simplejwt.settings import api_settings

from accounts.models import ActiveSession

logger = logging.getLogger(__name__)

token_backend = TokenBackend(
    algorithm=api_settings.ALGORITHM,
    signing_key=api_settings.SIGNING_KEY,
)


def get_cookie(scope, name: str):
    headers = dict(scope.get("headers", []))
    raw = headers.get(b"cookie")
    if not raw:
        return None
    cookie = SimpleCookie()
    cookie.load(raw.decode())
    morsel = cookie.get(name)
    return morsel.value if morsel else None


@database_sync_to_async
def get_session_user(user_id, session_id):
    """The user when ``session_id`` is still their active session, else anonymous."""
    active = ActiveSession.objects.filter(user_id=user_id).select_related("user").first()
    if not active or str(active.session_id) != str(session_id) or not active.user.is_active:
        return AnonymousUser()
    return get_user_model().objects.select_related("player_profile").get(id=user_id)


class JWTAuthMiddleware(BaseMiddleware):
    """Populate ``scope["user"]`` from the JWT access cookie."""

    async def __call__(self, scope, receive, send):
        scope["user"] = AnonymousUser()
        token = get_cookie(scope, settings.JWT_ACCESS_COOKIE)
        if token:
            try:
                payload = token_backend.decode(token, verify=True)
            except TokenBackendError as exc:
                logger.debug("websocket token rejected: %s", exc)
            else:
                user_id = payload.get(api_settings.USER_ID_CLAIM)
                session_id = payload.get("sid")
                if user_id is not None and session_id:
                    scope["user"] = await get_session_user(user_id, session_id)
        return await super().__call__(scope, receive, send)
