"""Runtime configuration layered over Django settings.

A ``SiteSetting`` row with the same key wins over the settings module, which
lets operators retune values such as ``POSTS_PER_PAGE`` without a deploy.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from django.conf import settings
from django.db import DatabaseError, connections

from forum.models import SiteSetting

logger = logging.getLogger(__name__)


def get_value(key: str, default: Optional[str] = None, *, using: str = "default") -> Optional[str]:
    if not _table_exists(using, SiteSetting._meta.db_table):
        return default
    try:
        return SiteSetting.objects.using(using).get(key=key).value
    except SiteSetting.DoesNotExist:
        return default
    except DatabaseError:
        logger.debug("Site setting %s unreadable; using default", key, exc_info=True)
        return default


def set_value(key: str, value: Any) -> None:
    SiteSetting.objects.update_or_create(key=key, defaults={"value": str(value)})


def get_int(key: str, default: int = 0, *, using: str = "default") -> int:
    raw = get_value(key, None, using=using)
    try:
        return int(raw) if raw is not None else default
    except (TypeError, ValueError):
        logger.warning("Site setting %s=%r is not an integer; using %s", key, raw, default)
        return default


def setting_int(key: str, *, using: str = "default") -> int:
    """Integer value for ``key``: site override first, then Django settings."""

    return get_int(key, int(getattr(settings, key)), using=using)


def _table_exists(connection_alias: str, table_name: str) -> bool:
    connection = connections[connection_alias]
    try:
        with connection.cursor():
            return table_name in connection.introspection.table_names()
    except DatabaseError:
        return False
