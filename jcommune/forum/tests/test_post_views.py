from __future__ import annotations

import json
from datetime import timedelta
from unittest import mock

from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from forum.models import Branch, LastReadPost, Post, Profile, Topic
from forum.services import configuration as config_service
from forum.services import posts as post_service


@override_settings(POSTS_PER_PAGE=2)
class PostViewTests(TestCase):
    @classmethod
    def setUpTestData(cls) -> None:
        User = get_user_model()
        cls.author = User.objects.create_user(username="alice", password="pw", email="alice@example.com")
        cls.stranger = User.objects.create_user(username="bob", password="pw")
        cls.moderator = User.objects.create_user(username="carol", password="pw")
        cls.branch = Branch.objects.create(name="General")
        cls.branch.moderators.add(cls.moderator)
        cls.topic = Topic.objects.create(title="Welcome", branch=cls.branch, author=cls.author)
        base = timezone.now() - timedelta(hours=1)
        cls.posts = [
            Post.objects.create(
                topic=cls.topic,
                author=cls.author,
                content=f"message {index}",
                created_at=base + timedelta(minutes=index),
            )
            for index in range(5)
        ]

    # -- redirect to post ---------------------------------------------------------

    def test_post_link_redirects_to_its_page(self) -> None:
        post = self.posts[2]
        response = self.client.get(reverse("forum:post_detail", args=[post.pk]))
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response["Location"], f"/topics/{self.topic.pk}/?page=2#post-{post.pk}")

    def test_unknown_post_link_is_404(self) -> None:
        response = self.client.get(reverse("forum:post_detail", args=[999999]))
        self.assertEqual(response.status_code, 404)

    # -- topic page -----------------------------------------------------------------

    def test_topic_page_lists_posts_of_that_page(self) -> None:
        response = self.client.get(reverse("forum:topic_detail", args=[self.topic.pk]), {"page": "2"})
        self.assertEqual(response.status_code, 200)
        shown = [post.pk for post in response.context["post_list"]]
        self.assertEqual(shown, [self.posts[2].pk, self.posts[3].pk])
        self.assertEqual([post.ordinal for post in response.context["post_list"]], [3, 4])
        self.assertContains(response, f'id="post-{self.posts[2].pk}"')

    def test_topic_page_past_the_end_is_empty(self) -> None:
        response = self.client.get(reverse("forum:topic_detail", args=[self.topic.pk]), {"page": "9"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["post_list"], [])
        self.assertContains(response, "There are no posts on this page.")

    def test_topic_page_flags_capabilities_per_post(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("forum:topic_detail", args=[self.topic.pk]))
        self.assertTrue(all(not post.can_edit and not post.can_delete for post in response.context["post_list"]))

        self.client.force_login(self.moderator)
        response = self.client.get(reverse("forum:topic_detail", args=[self.topic.pk]))
        self.assertTrue(all(post.can_edit and post.can_delete for post in response.context["post_list"]))

    def test_viewing_a_topic_marks_it_read(self) -> None:
        self.client.force_login(self.stranger)
        self.client.get(reverse("forum:topic_detail", args=[self.topic.pk]))
        mark = LastReadPost.objects.get(user=self.stranger, topic=self.topic)
        self.assertEqual(mark.post_index, 5)

    # -- delete -----------------------------------------------------------------------

    def test_author_deletes_post(self) -> None:
        self.client.force_login(self.author)
        post = self.posts[1]
        response = self.client.post(reverse("forum:post_delete", args=[post.pk]))
        self.assertRedirects(response, reverse("forum:topic_detail", args=[self.topic.pk]))
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())

    def test_delete_accepts_http_delete(self) -> None:
        self.client.force_login(self.moderator)
        post = self.posts[3]
        response = self.client.delete(reverse("forum:post_delete", args=[post.pk]))
        self.assertEqual(response.status_code, 302)
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())

    def test_stranger_cannot_delete(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.post(reverse("forum:post_delete", args=[self.posts[0].pk]))
        self.assertEqual(response.status_code, 403)
        self.assertTrue(Post.objects.filter(pk=self.posts[0].pk).exists())

    def test_deleting_the_only_post_removes_the_topic(self) -> None:
        lonely = Topic.objects.create(title="Lonely", branch=self.branch, author=self.author)
        only = Post.objects.create(topic=lonely, author=self.author, content="just me")
        self.client.force_login(self.author)
        response = self.client.post(reverse("forum:post_delete", args=[only.pk]))
        self.assertRedirects(response, reverse("forum:branch_detail", args=[self.branch.pk]))
        self.assertFalse(Topic.objects.filter(pk=lonely.pk).exists())

    def test_delete_locks_the_topic_row(self) -> None:
        with mock.patch.object(Topic.objects, "select_for_update", wraps=Topic.objects.select_for_update) as locked:
            post_service.delete_post(self.author, self.posts[0])
        locked.assert_called_once_with()
        self.assertFalse(Post.objects.filter(pk=self.posts[0].pk).exists())

    def test_deleting_the_last_two_posts_one_after_another_removes_the_topic(self) -> None:
        pair = Topic.objects.create(title="Pair", branch=self.branch, author=self.author)
        first = Post.objects.create(topic=pair, author=self.author, content="one")
        second = Post.objects.create(topic=pair, author=self.author, content="two")

        self.assertIsNotNone(post_service.delete_post(self.author, first))
        self.assertIsNone(post_service.delete_post(self.moderator, second))
        self.assertFalse(Topic.objects.filter(pk=pair.pk).exists())

    def test_deleted_post_link_is_404(self) -> None:
        post_id = self.posts[4].pk
        self.client.force_login(self.author)
        self.client.post(reverse("forum:post_delete", args=[post_id]))
        response = self.client.get(reverse("forum:post_detail", args=[post_id]))
        self.assertEqual(response.status_code, 404)

    # -- edit ---------------------------------------------------------------------------

    def test_edit_page_is_prefilled(self) -> None:
        self.client.force_login(self.author)
        response = self.client.get(reverse("forum:post_edit", args=[self.posts[0].pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["post_form"].initial["body_text"], "message 0")
        self.assertEqual(response.context["topic_title"], "Welcome")

    def test_stranger_cannot_open_edit_page(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("forum:post_edit", args=[self.posts[0].pk]))
        self.assertEqual(response.status_code, 403)

    def test_update_trims_and_redirects_to_post(self) -> None:
        post = self.posts[0]
        self.client.force_login(self.author)
        response = self.client.post(reverse("forum:post_edit", args=[post.pk]), {"body_text": "   reworded text  "})
        self.assertRedirects(
            response,
            reverse("forum:post_detail", args=[post.pk]),
            fetch_redirect_response=False,
        )
        post.refresh_from_db()
        self.assertEqual(post.content, "reworded text")
        self.assertIsNotNone(post.modified_at)

    def test_invalid_update_rerenders_form(self) -> None:
        post = self.posts[0]
        self.client.force_login(self.author)
        response = self.client.post(reverse("forum:post_edit", args=[post.pk]), {"body_text": "  x "})
        self.assertEqual(response.status_code, 200)
        self.assertIn("body_text", response.context["post_form"].errors)
        post.refresh_from_db()
        self.assertEqual(post.content, "message 0")

    # -- answer / create ----------------------------------------------------------------

    def test_answer_page_requires_login(self) -> None:
        response = self.client.get(reverse("forum:post_new"), {"topic_id": self.topic.pk})
        self.assertEqual(response.status_code, 302)
        self.assertTrue(response["Location"].startswith(settings.LOGIN_URL))

    def test_answer_page_renders_empty_form(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("forum:post_new"), {"topic_id": self.topic.pk})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["topic_id"], self.topic.pk)

    def test_answer_page_for_unknown_topic_is_404(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("forum:post_new"), {"topic_id": 999999})
        self.assertEqual(response.status_code, 404)

    def test_code_review_topic_rejects_answers(self) -> None:
        review = Topic.objects.create(title="Review", branch=self.branch, author=self.author, is_code_review=True)
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("forum:post_new"), {"topic_id": review.pk})
        self.assertEqual(response.status_code, 403)

    def test_closed_topic_accepts_moderator_only(self) -> None:
        closed = Topic.objects.create(title="Closed", branch=self.branch, author=self.author, closed=True)
        self.client.force_login(self.stranger)
        self.assertEqual(self.client.get(reverse("forum:post_new"), {"topic_id": closed.pk}).status_code, 403)
        response = self.client.post(reverse("forum:post_new"), {"topic_id": closed.pk, "body_text": "let me in"})
        self.assertEqual(response.status_code, 403)

        self.client.force_login(self.moderator)
        self.assertEqual(self.client.get(reverse("forum:post_new"), {"topic_id": closed.pk}).status_code, 200)

    def test_reply_redirects_to_page_of_new_post(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.post(
            reverse("forum:post_new"),
            {"topic_id": self.topic.pk, "body_text": "A fresh reply"},
        )
        new_post = Post.objects.get(content="A fresh reply")
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response["Location"], f"/topics/{self.topic.pk}/?page=3#post-{new_post.pk}")
        self.assertEqual(LastReadPost.objects.get(user=self.stranger, topic=self.topic).post_index, 6)

    def test_invalid_reply_rerenders_topic_page(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.post(
            reverse("forum:post_new") + "?page=2",
            {"topic_id": self.topic.pk, "body_text": " "},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("body_text", response.context["post_form"].errors)
        self.assertEqual(response.context["posts_page"].number, 2)
        self.assertFalse(response.context["subscribed"])
        self.assertIn("online_user_ids", response.context)
        self.assertEqual(Post.objects.filter(topic=self.topic).count(), 5)

    # -- quoting ---------------------------------------------------------------------------

    def test_quote_uses_selection(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("forum:post_quote", args=[self.posts[1].pk]), {"selection": "picked"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["post_form"].initial["body_text"], '[quote="alice"]picked[/quote]')

    def test_quote_without_selection_quotes_whole_post(self) -> None:
        self.client.force_login(self.stranger)
        response = self.client.post(reverse("forum:post_quote", args=[self.posts[1].pk]))
        self.assertEqual(response.context["post_form"].initial["body_text"], '[quote="alice"]message 1[/quote]')

    def test_ajax_quote_returns_json(self) -> None:
        response = self.client.get(reverse("forum:post_ajax_quote", args=[self.posts[2].pk]), {"selection": "bit"})
        self.assertEqual(response.status_code, 200)
        payload = json.loads(response.content)
        self.assertEqual(payload, {"status": "SUCCESS", "result": '[quote="alice"]bit[/quote]'})

    # -- preview ------------------------------------------------------------------------

    def test_preview_shows_escaped_body_and_signature(self) -> None:
        Profile.objects.create(user=self.author, signature="-- alice")
        self.client.force_login(self.author)
        response = self.client.post(reverse("forum:preview_post"), {"body_text": "  <b>bold</b> claim "})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.context["is_invalid"])
        self.assertEqual(response.context["content"], "<b>bold</b> claim")
        self.assertContains(response, "&lt;b&gt;bold&lt;/b&gt; claim")
        self.assertContains(response, "-- alice")

    def test_preview_reports_validation_errors(self) -> None:
        response = self.client.post(reverse("forum:preview_topic"), {"topic_title": "Hi", "body_text": "x"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context["is_invalid"])
        self.assertTrue(response.context["errors"])

    # -- subscription -----------------------------------------------------------------------

    def test_subscription_toggles(self) -> None:
        self.client.force_login(self.stranger)
        url = reverse("forum:topic_subscription", args=[self.topic.pk])
        self.client.post(url)
        self.assertTrue(self.topic.subscribers.filter(pk=self.stranger.pk).exists())
        self.client.post(url)
        self.assertFalse(self.topic.subscribers.filter(pk=self.stranger.pk).exists())

    # -- branch page --------------------------------------------------------------------------

    def test_branch_page_size_follows_site_setting(self) -> None:
        for title in ("Second", "Third"):
            Topic.objects.create(title=title, branch=self.branch, author=self.author)
        config_service.set_value("TOPICS_PER_PAGE", 1)

        response = self.client.get(reverse("forum:branch_detail", args=[self.branch.pk]), {"page": "2"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context["topics"]), 1)
        self.assertEqual(response.context["total_pages"], 3)
        self.assertEqual(response.context["page_number"], 2)
