"""Resolve which topic page a post is rendered on.

The locator never caches: page boundaries shift whenever posts are added or
removed, so every lookup re-reads the live post sequence of the topic.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from forum.exceptions import NotFound
from forum.services.pagination import page_for_ordinal

logger = logging.getLogger(__name__)


class PostSource(Protocol):
    """Read access the locator needs from the post store."""

    def get_post_by_id(self, post_id: int) -> Any:
        """Return an object with ``id`` and ``topic_id`` or raise ``NotFound``."""

    def get_ordered_post_sequence(self, topic_id: int) -> Sequence[int]:
        """Return post ids of the topic in rendering order."""

    def get_page_size(self) -> int:
        """Return the number of posts shown per topic page."""


@dataclass(frozen=True)
class PostLocation:
    topic_id: int
    page_index: int
    post_id: int


class PostLocator:
    def __init__(self, source: PostSource) -> None:
        self.source = source

    def locate_page(self, post_id: int) -> PostLocation:
        """Return the topic, page and anchor under which ``post_id`` is shown.

        Raises:
            NotFound: If the post does not exist or is not part of its
                topic's visible sequence any more.
        """
        post = self.source.get_post_by_id(post_id)
        topic_id = post.topic_id
        sequence = list(self.source.get_ordered_post_sequence(topic_id))
        try:
            ordinal = sequence.index(post.id) + 1
        except ValueError:
            raise NotFound(
                f"Post {post_id} is not visible in topic {topic_id}",
                entity="post",
                identifier=post_id,
            ) from None
        page_index = page_for_ordinal(ordinal, self.source.get_page_size())
        logger.debug("Post %s is #%s in topic %s (page %s)", post_id, ordinal, topic_id, page_index)
        return PostLocation(topic_id=topic_id, page_index=page_index, post_id=post.id)
