"""Who is online, derived from per-session heartbeats."""
from __future__ import annotations

import random
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.utils import timezone

from forum.models import SessionActivity

DEFAULT_PRUNE_PROBABILITY = getattr(settings, "SESSION_ACTIVITY_PRUNE_PROBABILITY", 0.05)


def _window_seconds(window_seconds: Optional[int] = None) -> int:
    return int(window_seconds or getattr(settings, "PRESENCE_WINDOW_SECONDS", 300))


def _ensure_session_key(request) -> Optional[str]:
    session = getattr(request, "session", None)
    if session is None:
        return None
    if not session.session_key:
        session.save()
    return session.session_key


def touch_session(request) -> None:
    """Mark the current session (and its user, if any) as active."""
    session_key = _ensure_session_key(request)
    if not session_key:
        return
    now = timezone.now()
    user = getattr(request, "user", None)
    user_ref = user if getattr(user, "is_authenticated", False) else None
    path = getattr(request, "path", "") or ""
    SessionActivity.objects.update_or_create(
        session_key=session_key,
        defaults={
            "user": user_ref,
            "last_path": path[:255],
            "last_seen": now,
        },
    )
    # Opportunistic pruning to keep the table tidy.
    if random.random() < DEFAULT_PRUNE_PROBABILITY:
        prune_stale_sessions(now=now)


def prune_stale_sessions(*, now=None, window_seconds: Optional[int] = None) -> int:
    """Remove heartbeats older than the presence window."""
    reference = now or timezone.now()
    cutoff = reference - timedelta(seconds=_window_seconds(window_seconds))
    deleted, _ = SessionActivity.objects.filter(last_seen__lt=cutoff).delete()
    return deleted


def online_user_ids(window_seconds: Optional[int] = None) -> frozenset[int]:
    cutoff = timezone.now() - timedelta(seconds=_window_seconds(window_seconds))
    ids = SessionActivity.objects.filter(last_seen__gte=cutoff, user__isnull=False).values_list("user_id", flat=True)
    return frozenset(ids)


def is_online(user_id: int, window_seconds: Optional[int] = None) -> bool:
    cutoff = timezone.now() - timedelta(seconds=_window_seconds(window_seconds))
    return SessionActivity.objects.filter(user_id=user_id, last_seen__gte=cutoff).exists()
