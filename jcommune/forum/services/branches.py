from __future__ import annotations

from django.db.models import QuerySet

from forum.exceptions import NotFound
from forum.models import Branch, Topic


class BranchService:
    """Branch lookups backed by the ORM."""

    def get(self, branch_id: int) -> Branch:
        try:
            return Branch.objects.get(pk=branch_id)
        except Branch.DoesNotExist:
            raise NotFound(f"Branch {branch_id} not found", entity="branch", identifier=branch_id) from None

    def topics(self, branch: Branch) -> QuerySet[Topic]:
        return branch.topics.select_related("author").order_by("-modified_at", "-id")


branch_service = BranchService()
