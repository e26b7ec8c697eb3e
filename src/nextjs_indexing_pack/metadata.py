"""Helpers for Next.js page metadata related to indexing."""

from typing import Any


def generate_robots_tag(no_index: bool = False, no_follow: bool = False) -> str:
    """Build a robots meta tag value such as ``index, follow``."""
    directives = [
        "noindex" if no_index else "index",
        "nofollow" if no_follow else "follow",
    ]
    return ", ".join(directives)


def generate_indexing_metadata(
    title: str | None = None,
    description: str | None = None,
    keywords: list[str] | None = None,
    canonical_url: str | None = None,
    no_index: bool = False,
    no_follow: bool = False,
) -> dict[str, Any]:
    """Build a Next.js ``metadata`` object for a page.

    Only provided values are included. Robots directives are emitted only
    when indexing or link following is disabled.

    Args:
        title: Page title
        description: Meta description
        keywords: Keywords, joined with ", "
        canonical_url: Canonical URL, placed under ``alternates.canonical``
        no_index: Prevent search engines from indexing the page
        no_follow: Prevent search engines from following links

    Returns:
        Metadata dictionary
    """
    metadata: dict[str, Any] = {}
    if title:
        metadata["title"] = title
    if description:
        metadata["description"] = description
    if keywords:
        metadata["keywords"] = ", ".join(keywords)
    if canonical_url:
        metadata["alternates"] = {"canonical": canonical_url}

    robots = [directive for directive, enabled in (("noindex", no_index), ("nofollow", no_follow)) if enabled]
    if robots:
        metadata["robots"] = ", ".join(robots)
    return metadata
