from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mass_mail
from django.urls import reverse

from forum.models import Post

logger = logging.getLogger(__name__)


def notify_subscribers(post: Post) -> int:
    """Mail every subscriber of the post's topic except its author."""

    topic = post.topic
    recipients = list(
        topic.subscribers.exclude(pk=post.author_id)
        .exclude(email="")
        .values_list("email", flat=True)
    )
    if not recipients:
        return 0
    url = reverse("forum:post_detail", args=[post.pk])
    author = post.author.get_username()
    subject = f"New reply in {topic.title}"
    body = f"{author} replied to \"{topic.title}\".\n\nRead it at {url}\n"
    messages = [(subject, body, settings.DEFAULT_FROM_EMAIL, [address]) for address in recipients]
    sent = send_mass_mail(messages, fail_silently=False)
    logger.info("Notified %s subscriber(s) of topic %s about post %s", sent, topic.pk, post.pk)
    return sent
