from __future__ import annotations

from django import forms
from django.conf import settings


class PostForm(forms.Form):
    """Body of a new or edited post. Char fields strip surrounding whitespace."""

    topic_id = forms.IntegerField(widget=forms.HiddenInput, required=False)
    body_text = forms.CharField(
        label="Message",
        widget=forms.Textarea(attrs={"rows": 10}),
        min_length=settings.POST_BODY_MIN_LENGTH,
        max_length=settings.POST_BODY_MAX_LENGTH,
        strip=True,
    )


class TopicPreviewForm(PostForm):
    topic_title = forms.CharField(max_length=200, required=False, strip=True)
