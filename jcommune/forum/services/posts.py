"""Post lookups, topic page slicing, edits and deletions.

``DatabasePostSource`` is the ORM side of the post locator. It orders posts
with ``POST_ORDERING``, the same ordering topic pages are rendered with.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.db.models import QuerySet
from django.urls import reverse
from django.utils import timezone

from forum.exceptions import NotFound
from forum.models import POST_ORDERING, Post, Topic
from forum.services import configuration as config_service
from forum.services import permissions
from forum.services.locator import PostLocation, PostLocator
from forum.services.pagination import PageRange, page_count, page_window, parse_page, range_for_page

logger = logging.getLogger(__name__)


def get_post(post_id: int) -> Post:
    try:
        return Post.objects.select_related("topic", "topic__branch", "author").get(pk=post_id)
    except Post.DoesNotExist:
        raise NotFound(f"Post {post_id} not found", entity="post", identifier=post_id) from None


def ordered_posts(topic: Topic | int) -> QuerySet[Post]:
    topic_id = topic if isinstance(topic, int) else topic.pk
    return Post.objects.filter(topic_id=topic_id).order_by(*POST_ORDERING)


def page_size() -> int:
    return config_service.setting_int("POSTS_PER_PAGE")


class DatabasePostSource:
    """Post store read through the Django ORM."""

    def get_post_by_id(self, post_id: int) -> Post:
        return get_post(post_id)

    def get_ordered_post_sequence(self, topic_id: int) -> list[int]:
        return list(ordered_posts(topic_id).values_list("id", flat=True))

    def get_page_size(self) -> int:
        return page_size()


def locate_post(post_id: int) -> PostLocation:
    return PostLocator(DatabasePostSource()).locate_page(post_id)


def location_url(location: PostLocation) -> str:
    """Topic page URL with the page selected and the post as anchor."""

    base = reverse("forum:topic_detail", args=[location.topic_id])
    return f"{base}?page={location.page_index}#post-{location.post_id}"


@dataclass
class PostPage:
    topic: Topic
    number: int
    page_size: int
    total_count: int
    range: PageRange
    posts: list[Post] = field(default_factory=list)

    @property
    def num_pages(self) -> int:
        return page_count(self.total_count, self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.num_pages

    @property
    def previous_page_number(self) -> int:
        return self.number - 1

    @property
    def next_page_number(self) -> int:
        return self.number + 1

    @property
    def window(self) -> list[int]:
        return page_window(self.number, self.num_pages)

    def ordinal_of(self, index: int) -> int:
        """Topic-wide ordinal of the ``index``-th post on this page."""
        return self.range.start + index


def get_posts_page(topic: Topic, raw_page: str | None) -> PostPage:
    """Posts shown on the requested page of ``topic``.

    A page past the end renders empty instead of failing.
    """
    size = page_size()
    queryset = ordered_posts(topic)
    total = queryset.count()
    number = parse_page(raw_page, page_count(total, size))
    page_range = range_for_page(number, size, total)
    posts: list[Post] = []
    if not page_range.is_empty:
        posts = list(queryset.select_related("author")[page_range.as_slice()])
    return PostPage(
        topic=topic,
        number=number,
        page_size=size,
        total_count=total,
        range=page_range,
        posts=posts,
    )


@transaction.atomic
def update_post(actor, post: Post, content: str) -> Post:
    permissions.ensure_can_edit(actor, post)
    now = timezone.now()
    post.content = content
    post.modified_at = now
    post.save(update_fields=["content", "modified_at"])
    post.topic.touch(activity=now)
    logger.info("Post %s edited by user %s", post.pk, actor.pk)
    return post


@transaction.atomic
def delete_post(actor, post: Post) -> Topic | None:
    """Delete ``post``; deleting the only post of a topic deletes the topic.

    Returns the surviving topic, or ``None`` when the topic went with it.
    """
    permissions.ensure_can_delete(actor, post)
    # Same row lock as reply_to_topic.
    try:
        topic = Topic.objects.select_for_update().get(pk=post.topic_id)
    except Topic.DoesNotExist:
        raise NotFound(f"Topic {post.topic_id} not found", entity="topic", identifier=post.topic_id) from None
    if not ordered_posts(topic).exclude(pk=post.pk).exists():
        topic_id = topic.pk
        topic.delete()
        logger.info("Topic %s deleted with its last post %s by user %s", topic_id, post.pk, actor.pk)
        return None
    post_id = post.pk
    post.delete()
    logger.info("Post %s in topic %s deleted by user %s", post_id, topic.pk, actor.pk)
    return topic
