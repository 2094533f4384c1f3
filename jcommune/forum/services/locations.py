"""Track which users are currently looking at a topic."""
from __future__ import annotations

import logging
import time
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import OperationalError, transaction
from django.utils import timezone

from forum.models import Topic, TopicView
from forum.services import configuration as config_service

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_RETRY_DELAY = 0.05


def _active_window_seconds() -> int:
    return config_service.get_int("TOPIC_VIEW_WINDOW_SECONDS", settings.TOPIC_VIEW_WINDOW_SECONDS)


def _get_session_key(request) -> str:
    session = getattr(request, "session", None)
    if session is None:
        raise RuntimeError("Session middleware required for topic view tracking")
    if not session.session_key:
        session.save()
    return session.session_key


def touch_topic_view(request, topic: Topic) -> None:
    """Record that the current session is viewing ``topic``."""

    session_key = _get_session_key(request)
    user = getattr(request, "user", None)
    defaults = {
        "user": user if getattr(user, "is_authenticated", False) else None,
        "last_seen": timezone.now(),
    }

    for attempt in range(_MAX_RETRIES):
        try:
            with transaction.atomic():
                TopicView.objects.update_or_create(
                    topic=topic,
                    session_key=session_key,
                    defaults=defaults,
                )
            break
        except OperationalError:
            if attempt + 1 == _MAX_RETRIES:
                logger.warning("Gave up recording view of topic %s", topic.pk, exc_info=True)
                return
            time.sleep(_RETRY_DELAY * (attempt + 1))

    prune_stale_views()


def prune_stale_views() -> int:
    cutoff = timezone.now() - timedelta(seconds=_active_window_seconds())
    deleted, _ = TopicView.objects.filter(last_seen__lt=cutoff).delete()
    return int(deleted)


def users_viewing(topic: Topic) -> list:
    """Signed-in users seen on ``topic`` within the view window, by username."""

    cutoff = timezone.now() - timedelta(seconds=_active_window_seconds())
    user_ids = TopicView.objects.filter(
        topic=topic, last_seen__gte=cutoff, user__isnull=False
    ).values_list("user_id", flat=True)
    User = get_user_model()
    return list(User.objects.filter(pk__in=set(user_ids)).order_by(User.USERNAME_FIELD))


def guests_viewing(topic: Topic) -> int:
    cutoff = timezone.now() - timedelta(seconds=_active_window_seconds())
    return TopicView.objects.filter(topic=topic, last_seen__gte=cutoff, user__isnull=True).count()
