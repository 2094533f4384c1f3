from __future__ import annotations

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import Http404, HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .exceptions import NotFound
from .forms import PostForm, TopicPreviewForm
from .models import Branch, Post, Profile, Topic
from .services import bbcode as bbcode_service
from .services import configuration as config_service
from .services import last_read as last_read_service
from .services import locations as location_service
from .services import permissions
from .services import posts as post_service
from .services import presence as presence_service
from .services import topics as topic_service
from .services.branches import branch_service
from .services.pagination import page_count, page_window, parse_page, range_for_page


QUOTE_SUCCESS = "SUCCESS"


def _or_404(lookup, identifier: int):
    try:
        return lookup(identifier)
    except NotFound as exc:
        raise Http404(str(exc)) from exc


def _signature(user) -> str:
    if not getattr(user, "is_authenticated", False):
        return ""
    return Profile.objects.filter(user=user).values_list("signature", flat=True).first() or ""


def _decorate(post: Post, topic: Topic, user, online_ids: frozenset[int], ordinal: int) -> None:
    """Attach per-viewer capabilities so templates never recompute them."""

    post.topic = topic
    post.ordinal = ordinal
    post.can_edit = permissions.can_edit(user, post)
    post.can_delete = permissions.can_delete(user, post)
    post.author_online = post.author_id in online_ids


def _topic_context(request: HttpRequest, topic: Topic, raw_page: str | None, form: PostForm | None) -> dict[str, object]:
    post_page = post_service.get_posts_page(topic, raw_page)
    online_ids = presence_service.online_user_ids()
    for index, post in enumerate(post_page.posts):
        _decorate(post, topic, request.user, online_ids, post_page.ordinal_of(index))
    can_reply = permissions.can_reply(request.user, topic)
    if form is None and can_reply:
        form = PostForm(initial={"topic_id": topic.pk})
    return {
        "topic": topic,
        "branch": topic.branch,
        "posts_page": post_page,
        "post_list": post_page.posts,
        "page_window": post_page.window,
        "view_list": location_service.users_viewing(topic),
        "guests_viewing": location_service.guests_viewing(topic),
        "online_user_ids": online_ids,
        "subscribed": topic_service.is_subscribed(request.user, topic),
        "can_reply": can_reply,
        "can_moderate": permissions.is_privileged(request.user, topic.branch),
        "post_form": form,
    }


@require_GET
def branch_list(request: HttpRequest) -> HttpResponse:
    branches = Branch.objects.all()
    return render(request, "forum/branch_list.html", {"branches": branches})


@require_GET
def branch_detail(request: HttpRequest, pk: int) -> HttpResponse:
    branch = _or_404(branch_service.get, pk)
    topics_qs = branch_service.topics(branch)
    size = config_service.setting_int("TOPICS_PER_PAGE")
    total = topics_qs.count()
    total_pages = page_count(total, size)
    number = parse_page(request.GET.get("page"), total_pages)
    page_range = range_for_page(number, size, total)
    topics = list(topics_qs[page_range.as_slice()]) if not page_range.is_empty else []
    context = {
        "branch": branch,
        "topics": topics,
        "page_number": number,
        "total_pages": total_pages,
        "page_window": page_window(number, total_pages),
    }
    return render(request, "forum/branch_detail.html", context)


@require_GET
def topic_detail(request: HttpRequest, pk: int) -> HttpResponse:
    topic = _or_404(topic_service.get_topic, pk)
    location_service.touch_topic_view(request, topic)
    context = _topic_context(request, topic, request.GET.get("page"), None)
    last_read_service.mark_topic_as_read(request.user, topic)
    return render(request, "forum/topic/post_list.html", context)


@login_required
@require_POST
def topic_subscription(request: HttpRequest, pk: int) -> HttpResponse:
    topic = _or_404(topic_service.get_topic, pk)
    subscribed = topic_service.toggle_subscription(request.user, topic)
    messages.success(request, "Subscribed to topic." if subscribed else "Unsubscribed from topic.")
    return redirect("forum:topic_detail", pk=topic.pk)


@require_GET
def post_detail(request: HttpRequest, pk: int) -> HttpResponse:
    """Redirect to the topic page that currently shows the post.

    Links to posts never carry a page number; it is worked out on every
    request because earlier posts may have been added or removed since the
    link was made.
    """
    location = _or_404(post_service.locate_post, pk)
    return redirect(post_service.location_url(location))


@login_required
@require_http_methods(["POST", "DELETE"])
def post_delete(request: HttpRequest, pk: int) -> HttpResponse:
    post = _or_404(post_service.get_post, pk)
    branch_id = post.topic.branch_id
    topic = post_service.delete_post(request.user, post)
    if topic is None:
        messages.success(request, "Topic removed together with its only post.")
        return redirect("forum:branch_detail", pk=branch_id)
    messages.success(request, "Post deleted.")
    return redirect("forum:topic_detail", pk=topic.pk)


@login_required
@require_http_methods(["GET", "POST"])
def post_edit(request: HttpRequest, pk: int) -> HttpResponse:
    post = _or_404(post_service.get_post, pk)
    permissions.ensure_can_edit(request.user, post)
    if request.method == "POST":
        form = PostForm(request.POST)
        if form.is_valid():
            post_service.update_post(request.user, post, form.cleaned_data["body_text"])
            return redirect("forum:post_detail", pk=post.pk)
    else:
        form = PostForm(initial={"topic_id": post.topic_id, "body_text": post.content})
    context = {
        "post": post,
        "topic": post.topic,
        "topic_id": post.topic_id,
        "post_id": post.pk,
        "topic_title": post.topic.title,
        "post_form": form,
    }
    return render(request, "forum/topic/edit_post.html", context)


def _answer_page(request: HttpRequest, topic: Topic, body_text: str = "") -> HttpResponse:
    permissions.ensure_can_reply(request.user, topic)
    initial = {"topic_id": topic.pk}
    if body_text:
        initial["body_text"] = body_text
    context = {
        "topic": topic,
        "topic_id": topic.pk,
        "post_form": PostForm(initial=initial),
    }
    return render(request, "forum/topic/answer.html", context)


def _topic_id_param(raw: str | None) -> int:
    try:
        return int(raw or "")
    except ValueError:
        raise Http404("Topic not specified") from None


@login_required
@require_http_methods(["GET", "POST"])
def post_new(request: HttpRequest) -> HttpResponse:
    if request.method == "GET":
        topic = _or_404(topic_service.get_topic, _topic_id_param(request.GET.get("topic_id")))
        return _answer_page(request, topic)

    form = PostForm(request.POST)
    topic = _or_404(topic_service.get_topic, _topic_id_param(request.POST.get("topic_id")))
    if not form.is_valid():
        raw_page = request.GET.get("page") or request.POST.get("page") or "1"
        context = _topic_context(request, topic, raw_page, form)
        return render(request, "forum/topic/post_list.html", context)

    try:
        post = topic_service.reply_to_topic(request.user, topic.pk, form.cleaned_data["body_text"], topic.branch_id)
    except NotFound as exc:
        raise Http404(str(exc)) from exc
    last_read_service.mark_topic_as_read(request.user, topic)
    return redirect(post_service.location_url(post_service.locate_post(post.pk)))


def _selection_or_content(request: HttpRequest, post: Post) -> str:
    # Nothing selected means the whole post is quoted.
    selection = request.POST.get("selection") if request.method == "POST" else request.GET.get("selection")
    return selection if selection else post.content


@login_required
@require_http_methods(["GET", "POST"])
def post_quote(request: HttpRequest, pk: int) -> HttpResponse:
    source = _or_404(post_service.get_post, pk)
    content = _selection_or_content(request, source)
    return _answer_page(request, source.topic, bbcode_service.quote(content, source.author))


@require_GET
def post_ajax_quote(request: HttpRequest, pk: int) -> JsonResponse:
    source = _or_404(post_service.get_post, pk)
    content = _selection_or_content(request, source)
    return JsonResponse({"status": QUOTE_SUCCESS, "result": bbcode_service.quote(content, source.author)})


def _preview(request: HttpRequest, form: PostForm) -> HttpResponse:
    is_valid = form.is_valid()
    content = form.cleaned_data.get("body_text") if is_valid else (request.POST.get("body_text") or "").strip()
    context = {
        "content": content,
        "signature": _signature(request.user),
        "is_invalid": "body_text" in form.errors,
        "errors": form.errors.get("body_text", []),
    }
    return render(request, "forum/ajax/post_preview.html", context)


@require_POST
def preview_post(request: HttpRequest) -> HttpResponse:
    return _preview(request, PostForm(request.POST))


@require_POST
def preview_topic(request: HttpRequest) -> HttpResponse:
    return _preview(request, TopicPreviewForm(request.POST))
