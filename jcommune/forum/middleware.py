from __future__ import annotations

import logging

from django.db import DatabaseError

from forum.services import presence as presence_service

logger = logging.getLogger(__name__)


class SessionActivityMiddleware:
    """Record a presence heartbeat for every request carrying a session."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if hasattr(request, "session"):
            try:
                presence_service.touch_session(request)
            except DatabaseError:
                # Presence must never break the request cycle.
                logger.debug("Session activity heartbeat failed", exc_info=True)
        return response
