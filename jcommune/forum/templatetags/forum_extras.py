from __future__ import annotations

from typing import Any

from django import template
from django.urls import reverse
from django.utils.html import escape
from django.utils.safestring import mark_safe

register = template.Library()


def _human_join(parts: list[str]) -> str:
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    if len(parts) == 2:
        return f"{parts[0]} and {parts[1]}"
    return f"{', '.join(parts[:-1])}, and {parts[-1]}"


@register.filter(name="presence_badge")
def presence_badge(user: Any, online_ids: Any) -> str:
    """Online/offline marker for ``user`` given the view's online id set."""

    user_id = getattr(user, "pk", None)
    if user_id is None:
        return ""
    online = bool(online_ids) and user_id in online_ids
    label = "ONLINE" if online else "OFFLINE"
    state = "presence-online" if online else "presence-offline"
    return mark_safe(f'<span class="presence-badge {state}"><span class="presence-dot"></span>{label}</span>')


@register.simple_tag(name="viewers_line")
def viewers_line(users: Any, guests: int = 0) -> str:
    names = [f'<span class="viewer-name">{escape(user.get_username())}</span>' for user in users or []]
    guests = int(guests or 0)
    if guests > 0:
        guest_label = "guest" if guests == 1 else "guests"
        names.append(f'<span class="viewer-guest">{guests} {guest_label}</span>')
    if not names:
        return mark_safe('<span class="viewers-line viewers-empty">Nobody is browsing this topic.</span>')
    total = len(users or []) + guests
    verb = "is" if total == 1 else "are"
    return mark_safe(f'<span class="viewers-line">{_human_join(names)} {verb} browsing this topic</span>')


@register.simple_tag(name="topic_page_url")
def topic_page_url(topic: Any, number: int) -> str:
    return f"{reverse('forum:topic_detail', args=[topic.pk])}?page={int(number)}"


@register.filter(name="post_anchor")
def post_anchor(post: Any) -> str:
    return f"post-{post.pk}"
