from __future__ import annotations

from forum.models import LastReadPost, Topic


def mark_topic_as_read(user, topic: Topic) -> None:
    """Record that ``user`` has read every post currently in ``topic``."""

    if not getattr(user, "is_authenticated", False):
        return
    LastReadPost.objects.update_or_create(
        user=user,
        topic=topic,
        defaults={"post_index": topic.posts.count()},
    )
