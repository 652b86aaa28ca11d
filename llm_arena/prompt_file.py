"""Markdown prompt files with optional YAML frontmatter."""

from pathlib import Path

import frontmatter


def parse_file(file_path: Path) -> tuple[str, dict]:
    """Parse a markdown prompt file.

    Returns:
        (content, metadata) where content is the body text and metadata the
        frontmatter keys, e.g. providers, provider_a, provider_b, rounds,
        keywords, mode. If there is no frontmatter, metadata is {}.
    """
    post = frontmatter.load(str(file_path))
    return post.content.strip(), dict(post.metadata)


def as_list(value: object) -> list[str]:
    """Frontmatter lists may be YAML lists or comma-separated strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]
