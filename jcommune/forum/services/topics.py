from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from forum.exceptions import NotFound
from forum.models import Branch, Post, Topic
from forum.services import notifications
from forum.services import permissions

logger = logging.getLogger(__name__)


def get_topic(topic_id: int) -> Topic:
    try:
        return Topic.objects.select_related("branch", "author").get(pk=topic_id)
    except Topic.DoesNotExist:
        raise NotFound(f"Topic {topic_id} not found", entity="topic", identifier=topic_id) from None


@transaction.atomic
def create_topic(actor, branch: Branch, *, title: str, content: str, is_code_review: bool = False) -> Topic:
    """Open a topic in ``branch`` together with its first post."""

    now = timezone.now()
    topic = Topic.objects.create(
        title=title,
        branch=branch,
        author=actor,
        created_at=now,
        modified_at=now,
        is_code_review=is_code_review,
    )
    Post.objects.create(topic=topic, author=actor, content=content, created_at=now)
    topic.subscribers.add(actor)
    logger.info("Topic %s opened in branch %s by user %s", topic.pk, branch.pk, actor.pk)
    return topic


@transaction.atomic
def reply_to_topic(actor, topic_id: int, content: str, branch_id: Optional[int] = None) -> Post:
    """Append a post to the topic and schedule subscriber mail."""

    try:
        topic = Topic.objects.select_for_update().select_related("branch").get(pk=topic_id)
    except Topic.DoesNotExist:
        raise NotFound(f"Topic {topic_id} not found", entity="topic", identifier=topic_id) from None
    if branch_id is not None and topic.branch_id != branch_id:
        raise NotFound(f"Topic {topic_id} is not in branch {branch_id}", entity="topic", identifier=topic_id)
    permissions.ensure_can_reply(actor, topic)

    post = Post.objects.create(topic=topic, author=actor, content=content)
    topic.touch(activity=post.created_at)
    transaction.on_commit(lambda: _notify_subscribers(post))
    logger.info("User %s replied to topic %s with post %s", actor.pk, topic.pk, post.pk)
    return post


def _notify_subscribers(post: Post) -> None:
    # Runs after commit; the reply is already saved.
    try:
        notifications.notify_subscribers(post)
    except OSError:
        logger.warning("Could not notify subscribers of topic %s about post %s", post.topic_id, post.pk, exc_info=True)


def is_subscribed(actor, topic: Topic) -> bool:
    if not getattr(actor, "is_authenticated", False):
        return False
    return topic.subscribers.filter(pk=actor.pk).exists()


def toggle_subscription(actor, topic: Topic) -> bool:
    """Flip the actor's subscription; returns the new state."""

    if is_subscribed(actor, topic):
        topic.subscribers.remove(actor)
        return False
    topic.subscribers.add(actor)
    return True
