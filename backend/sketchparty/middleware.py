import logging
import uuid

logger = logging.getLogger(__name__)


class RequestIDMiddleware:
    """Tag each request with an id, echo it back and log slow failures with it."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.request_id = request_id
        response = self.get_response(request)
        response["X-Request-ID"] = request_id
        if response.status_code >= 500:
            logger.error("request_id=%s %s %s -> %s", request_id, request.method, request.path, response.status_code)
        return response


class NoStoreAuthMiddleware:
    """Session responses carry tokens; keep them out of shared caches."""

    AUTH_PREFIX = "/api/auth/"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if request.path.startswith(self.AUTH_PREFIX):
            response["Cache-Control"] = "no-store"
            response["Pragma"] = "no-cache"
        return response
