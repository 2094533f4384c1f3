from __future__ import annotations

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ForumConfig(AppConfig):
    """Configuration for the forum app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'forum'

    def ready(self) -> None:
        from .plugin_api import TransactionalPluginBranchService  # noqa: WPS433 - lazy import for app loading
        from .services.branches import branch_service

        TransactionalPluginBranchService.get_instance().set_branch_service(branch_service)
        logger.debug("Plugin branch service wired to %s", type(branch_service).__name__)
