"""Render classified bookmarks as Obsidian-style markdown notes.

Three document kinds:
    bookmark note     front matter + summary + text + media + metrics + link
    category index    list of notes in one category
    vault index       list of categories with counts
"""

from datetime import datetime, timezone

from .models import ClassifiedBookmark

# X's date format: "Thu May 14 18:01:35 +0000 2020"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def make_filename(item: ClassifiedBookmark) -> str:
    """Stable note name: <handle>-<id>, so re-runs overwrite instead of duplicate."""
    handle = item.bookmark.author_handle or "unknown"
    return f"{handle}-{item.bookmark.id}"


def format_date(value: str) -> str:
    """Reduce a source timestamp to YYYY-MM-DD (UTC); unparseable input is returned as-is."""
    try:
        parsed = datetime.strptime(value, TWITTER_DATE_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%d")


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_bookmark(item: ClassifiedBookmark, include_media: bool = True) -> str:
    bookmark = item.bookmark
    handle = bookmark.author_handle
    lines: list[str] = []

    lines.append("---")
    lines.append(f"title: {_quote(f'Tweet by @{handle}')}")
    lines.append(f"author: {_quote(f'@{handle}')}")
    lines.append(f"author_name: {_quote(bookmark.author_name)}")
    if bookmark.created_at:
        lines.append(f"date: {_quote(format_date(bookmark.created_at))}")
    lines.append(f"url: {_quote(bookmark.url)}")
    lines.append(f"category: {_quote(item.category)}")
    if item.subcategory:
        lines.append(f"subcategory: {_quote(item.subcategory)}")
    lines.append(f"tags: [{', '.join(_quote(t) for t in item.tags)}]")
    lines.append("---")
    lines.append("")

    lines.append(f"> {item.summary}")
    lines.append("")

    lines.append(bookmark.text)
    lines.append("")

    if include_media and bookmark.media:
        lines.append("## Media")
        for m in bookmark.media:
            if m.kind == "photo":
                lines.append(f"![{m.alt_text or 'image'}]({m.url})")
            else:
                lines.append(f"- [{m.kind}]({m.url})")
        lines.append("")

    if bookmark.metrics:
        metrics = bookmark.metrics
        parts = [
            f"{metrics.likes} likes",
            f"{metrics.retweets} retweets",
            f"{metrics.replies} replies",
        ]
        if metrics.views is not None:
            parts.append(f"{metrics.views} views")
        lines.append("---")
        lines.append(f"*{' · '.join(parts)}*")
        lines.append("")

    lines.append(f"[View on X]({bookmark.url})")
    return "\n".join(lines)


def render_category_index(category: str, items: list[ClassifiedBookmark]) -> str:
    lines = [
        "---",
        f"title: {_quote(category)}",
        "type: category-index",
        f"count: {len(items)}",
        "---",
        "",
        f"# {category}",
        "",
        f"{len(items)} bookmarks in this category.",
        "",
    ]
    for item in items:
        lines.append(
            f"- [[{make_filename(item)}|@{item.bookmark.author_handle}]]: {item.summary}"
        )
    return "\n".join(lines)


def render_vault_index(name: str, groups: dict[str, list[ClassifiedBookmark]]) -> str:
    """Render the vault root index. ``groups`` maps directory name to items."""
    total = sum(len(items) for items in groups.values())
    lines = [
        "---",
        f"title: {_quote(name)}",
        "type: vault-index",
        "---",
        "",
        f"# {name}",
        "",
        f"{total} bookmarks across {len(groups)} categories.",
        "",
    ]
    for directory, items in groups.items():
        lines.append(f"- **[[{directory}/_index|{items[0].category}]]** ({len(items)})")
    return "\n".join(lines)
