from __future__ import annotations


def quote(content: str, author) -> str:
    """Wrap ``content`` in a ``[quote]`` tag attributed to ``author``.

    Only builds the markup; turning it into HTML happens elsewhere.
    """
    name = author.get_username() if hasattr(author, "get_username") else str(author)
    name = name.replace('"', "'")
    return f'[quote="{name}"]{content}[/quote]'
