from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from forum.models import Branch, Post, Topic

DEMO_BRANCHES = [
    ("Announcements", "News about the forum itself."),
    ("General", "Anything that fits nowhere else."),
]


class Command(BaseCommand):
    help = "Seed a demo forum: an admin, a moderator, branches and a long paginated topic."

    def add_arguments(self, parser):  # pragma: no cover - CLI wiring
        parser.add_argument(
            "--posts",
            type=int,
            default=45,
            help="Number of posts in the demo topic.",
        )
        parser.add_argument(
            "--password",
            default="admin",
            help="Password for the seeded accounts.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()
        password = options["password"]
        admin, created = User.objects.get_or_create(
            username="admin",
            defaults={"is_staff": True, "is_superuser": True, "email": "admin@localhost"},
        )
        if created:
            admin.set_password(password)
            admin.save(update_fields=["password"])
        moderator, created = User.objects.get_or_create(username="moderator", defaults={"email": "moderator@localhost"})
        if created:
            moderator.set_password(password)
            moderator.save(update_fields=["password"])

        branches = []
        for position, (name, description) in enumerate(DEMO_BRANCHES, start=1):
            branch, _ = Branch.objects.get_or_create(
                name=name,
                defaults={"description": description, "position": position * 10},
            )
            branch.moderators.add(moderator)
            branches.append(branch)
        self.stdout.write(self.style.SUCCESS(f"Ensured branches: {', '.join(b.name for b in branches)}"))

        topic = Topic.objects.filter(title="Welcome to the forum", branch=branches[0]).first()
        if topic is None:
            start = timezone.now() - timedelta(minutes=options["posts"])
            topic = Topic.objects.create(
                title="Welcome to the forum",
                branch=branches[0],
                author=admin,
                created_at=start,
                modified_at=start,
            )
            topic.subscribers.add(admin)
            Post.objects.bulk_create(
                Post(
                    topic=topic,
                    author=admin if index % 2 == 0 else moderator,
                    content=f"Demo post number {index + 1}.",
                    created_at=start + timedelta(minutes=index),
                )
                for index in range(max(options["posts"], 1))
            )
            topic.touch()
        count = topic.posts.count()
        self.stdout.write(self.style.SUCCESS(f"Demo topic id={topic.pk} holds {count} posts"))
