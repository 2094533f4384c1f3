"""Branch access for plugins.

Plugins are loaded outside Django's request cycle and cannot receive
services through view wiring, so they go through a process-wide facade.
``ForumConfig.ready`` installs the real branch service behind it.
"""
from __future__ import annotations

from typing import Optional, Protocol

from forum.models import Branch


class PluginBranchService(Protocol):
    def get(self, branch_id: int) -> Branch:
        """Return the branch or raise ``forum.exceptions.NotFound``."""


class TransactionalPluginBranchService:
    _instance: Optional["TransactionalPluginBranchService"] = None

    def __init__(self) -> None:
        self._branch_service: Optional[PluginBranchService] = None

    @classmethod
    def get_instance(cls) -> "TransactionalPluginBranchService":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def set_branch_service(self, branch_service: PluginBranchService) -> None:
        self._branch_service = branch_service

    def get(self, branch_id: int) -> Branch:
        if self._branch_service is None:
            raise RuntimeError("Plugin branch service used before the forum app was ready")
        return self._branch_service.get(branch_id)
