"""Write classified bookmarks into a vault directory.

Layout:
    <output_dir>/_index.md
    <output_dir>/<category>/_index.md
    <output_dir>/<category>/<handle>-<id>.md

Notes are overwritten in place on re-runs and never deleted; the index files
are regenerated from the current items every time.
"""

import logging
import re
from pathlib import Path

from .markdown import (
    make_filename,
    render_bookmark,
    render_category_index,
    render_vault_index,
)
from .models import ClassifiedBookmark, GenerateResult, VaultOptions

logger = logging.getLogger(__name__)

INDEX_FILENAME = "_index.md"

UNSAFE_PATH_CHARS = re.compile(r'[<>:"/\\|?*]')


def sanitize_path(name: str) -> str:
    """Make a category name safe to use as a directory name."""
    cleaned = UNSAFE_PATH_CHARS.sub("_", name).strip()
    if cleaned in ("", ".", ".."):
        return "_"
    return cleaned


def group_by_category(
    items: list[ClassifiedBookmark],
) -> dict[str, list[ClassifiedBookmark]]:
    """Group items by exact category string, preserving first-seen order."""
    groups: dict[str, list[ClassifiedBookmark]] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    return groups


def generate_vault(items: list[ClassifiedBookmark], options: VaultOptions) -> GenerateResult:
    output_dir = Path(options.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    by_category = group_by_category(items)
    # Categories that sanitize to the same name share one directory
    by_directory: dict[str, list[ClassifiedBookmark]] = {}
    files_created = 0

    for category, category_items in by_category.items():
        directory = sanitize_path(category)
        category_dir = output_dir / directory
        category_dir.mkdir(parents=True, exist_ok=True)

        for item in category_items:
            note_path = category_dir / f"{make_filename(item)}.md"
            note_path.write_text(
                render_bookmark(item, include_media=options.include_media),
                encoding="utf-8",
            )
            files_created += 1

        by_directory.setdefault(directory, []).extend(category_items)
        logger.info("Wrote %d notes to %s", len(category_items), category_dir)

    if options.create_index:
        for directory, directory_items in by_directory.items():
            (output_dir / directory / INDEX_FILENAME).write_text(
                render_category_index(directory_items[0].category, directory_items),
                encoding="utf-8",
            )
            files_created += 1

        (output_dir / INDEX_FILENAME).write_text(
            render_vault_index(options.vault_name, by_directory),
            encoding="utf-8",
        )
        files_created += 1

    return GenerateResult(
        files_created=files_created,
        categories=list(by_category),
        output_dir=output_dir,
    )
