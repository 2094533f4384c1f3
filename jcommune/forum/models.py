from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

# Topic pages and the post locator must agree on this ordering.
POST_ORDERING = ("created_at", "id")


class Branch(models.Model):
    """Top-level board that groups topics."""

    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    position = models.PositiveIntegerField(default=100, db_index=True)
    moderators = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name="moderated_branches")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["position", "name"]
        verbose_name_plural = "branches"

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Topic(models.Model):
    """A discussion thread: an ordered sequence of posts."""

    title = models.CharField(max_length=200)
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="topics")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="topics")
    created_at = models.DateTimeField(default=timezone.now)
    modified_at = models.DateTimeField(default=timezone.now, db_index=True)
    closed = models.BooleanField(default=False)
    is_code_review = models.BooleanField(default=False)
    subscribers = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name="subscribed_topics")

    class Meta:
        ordering = ["-modified_at", "-id"]
        permissions = [
            ("post_in_closed_topic", "Can reply to closed topics"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.title

    def touch(self, *, activity=None, auto_save: bool = True) -> None:
        """Move the last-modified stamp forward."""

        now = activity or timezone.now()
        if self.modified_at is None or now > self.modified_at:
            self.modified_at = now
            if auto_save:
                self.save(update_fields=["modified_at"])


class Post(models.Model):
    """A single message within a topic."""

    topic = models.ForeignKey(Topic, on_delete=models.CASCADE, related_name="posts")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="posts")
    content = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    modified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = list(POST_ORDERING)
        permissions = [
            ("moderate_posts", "Can edit and delete any post"),
        ]
        indexes = [
            models.Index(fields=["topic", "created_at", "id"], name="forum_post_topic_order_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Post #{self.pk} in {self.topic_id}"


class LastReadPost(models.Model):
    """How far into a topic a user has read, by post ordinal."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="last_read_posts")
    topic = models.ForeignKey(Topic, on_delete=models.CASCADE, related_name="last_read_marks")
    post_index = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "topic"], name="forum_lastread_user_topic"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id} read {self.topic_id} to {self.post_index}"


class TopicView(models.Model):
    """Heartbeat of a session currently viewing a topic."""

    topic = models.ForeignKey(Topic, on_delete=models.CASCADE, related_name="views")
    session_key = models.CharField(max_length=64)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="topic_views",
    )
    last_seen = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["topic", "session_key"], name="forum_topicview_topic_session"),
        ]
        indexes = [
            models.Index(fields=["last_seen"], name="forum_topicview_seen_idx"),
        ]
        ordering = ["-last_seen"]

    def __str__(self) -> str:  # pragma: no cover
        return f"View {self.topic_id}::{self.session_key}"


class SessionActivity(models.Model):
    """Per-session heartbeat used for presence."""

    session_key = models.CharField(max_length=64, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="session_activity",
    )
    last_path = models.CharField(max_length=255, blank=True)
    last_seen = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-last_seen"]
        indexes = [
            models.Index(fields=["last_seen"], name="forum_session_seen_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Session {self.session_key} @ {self.last_seen:%H:%M:%S}"


class SiteSetting(models.Model):
    """Simple key/value store for runtime configuration."""

    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=255)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.key}={self.value}"


class Profile(models.Model):
    """Forum-specific extension of the auth user."""

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="forum_profile")
    signature = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:  # pragma: no cover
        return f"Profile of {self.user_id}"
