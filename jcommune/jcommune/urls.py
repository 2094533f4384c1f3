"""URL configuration for jcommune.

Forum pages live at the root. Authentication views come from
``django.contrib.auth`` so posting can require a signed-in user.
"""
from __future__ import annotations

from django.contrib.auth import views as auth_views
from django.urls import include, path

urlpatterns = [
    path('accounts/login/', auth_views.LoginView.as_view(template_name="forum/login.html"), name='login'),
    path('accounts/logout/', auth_views.LogoutView.as_view(), name='logout'),
    path('', include(('forum.urls', 'forum'), namespace='forum')),
]
