from __future__ import annotations

from django.urls import path

from . import views

app_name = "forum"

urlpatterns = [
    path("", views.branch_list, name="branch_list"),
    path("branches/<int:pk>/", views.branch_detail, name="branch_detail"),
    path("topics/<int:pk>/", views.topic_detail, name="topic_detail"),
    path("topics/<int:pk>/subscription/", views.topic_subscription, name="topic_subscription"),
    path("topics/bbToHtml/", views.preview_topic, name="preview_topic"),
    path("posts/new/", views.post_new, name="post_new"),
    path("posts/bbToHtml/", views.preview_post, name="preview_post"),
    path("posts/<int:pk>/", views.post_detail, name="post_detail"),
    path("posts/<int:pk>/delete/", views.post_delete, name="post_delete"),
    path("posts/<int:pk>/edit/", views.post_edit, name="post_edit"),
    path("posts/<int:pk>/quote/", views.post_quote, name="post_quote"),
    path("posts/<int:pk>/ajax_quote/", views.post_ajax_quote, name="post_ajax_quote"),
]
