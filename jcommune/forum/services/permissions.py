"""Capability checks for posts and topics.

Every check takes the acting user explicitly. Anonymous users never hold a
capability. Privilege is decided per branch: superusers, holders of
``forum.moderate_posts`` and the branch's moderators.
"""
from __future__ import annotations

from django.core.exceptions import PermissionDenied

from forum.models import Branch, Post, Topic

_PRIVILEGE_CACHE_ATTR = "_forum_privileged_branches"


def _is_authenticated(actor) -> bool:
    return bool(actor is not None and getattr(actor, "is_authenticated", False))


def is_privileged(actor, branch: Branch | None) -> bool:
    if not _is_authenticated(actor):
        return False
    if actor.is_superuser or actor.has_perm("forum.moderate_posts"):
        return True
    if branch is None:
        return False
    # Memoised on the request-scoped user so a page of posts costs one query.
    cache: dict[int, bool] | None = getattr(actor, _PRIVILEGE_CACHE_ATTR, None)
    if cache is None:
        cache = {}
        setattr(actor, _PRIVILEGE_CACHE_ATTR, cache)
    if branch.pk not in cache:
        cache[branch.pk] = branch.moderators.filter(pk=actor.pk).exists()
    return cache[branch.pk]


def is_author(actor, post: Post) -> bool:
    return _is_authenticated(actor) and post.author_id == actor.pk


def can_edit(actor, post: Post) -> bool:
    return is_author(actor, post) or is_privileged(actor, post.topic.branch)


def can_delete(actor, post: Post) -> bool:
    return is_author(actor, post) or is_privileged(actor, post.topic.branch)


def can_reply(actor, topic: Topic) -> bool:
    if not _is_authenticated(actor):
        return False
    if topic.is_code_review:
        return False
    if topic.closed:
        return is_privileged(actor, topic.branch) or actor.has_perm("forum.post_in_closed_topic")
    return True


def ensure_can_edit(actor, post: Post) -> None:
    if not can_edit(actor, post):
        raise PermissionDenied("Only the author or a moderator may edit this post.")


def ensure_can_delete(actor, post: Post) -> None:
    if not can_delete(actor, post):
        raise PermissionDenied("Only the author or a moderator may delete this post.")


def ensure_can_reply(actor, topic: Topic) -> None:
    if topic.is_code_review:
        raise PermissionDenied("It is not possible to add posts to code review except the initial one.")
    if not can_reply(actor, topic):
        raise PermissionDenied("This topic does not accept new posts.")
