"""Import bookmarks from a JSON document.

Accepted documents:
    [ {...}, {...} ]                 bare array
    {"bookmarks": [ {...}, ... ]}    wrapped array

Each element may be a flat record (``id``, ``full_text``, ``author_handle``,
...), a record written by ``tweetvault fetch`` (``Bookmark.to_dict()``), or a
vendor-native export nested under ``tweet.*`` / ``user.*``. Every field is
resolved through an ordered list of candidate key paths; the first present
value wins.
"""

import json
import logging
from pathlib import Path

from .models import (
    Bookmark,
    ClassificationResult,
    ClassifiedBookmark,
    FetchResult,
    MediaItem,
    Metrics,
)

logger = logging.getLogger(__name__)

# Ordered key paths per logical field, relative to the tweet object
ID_PATHS = [("id",), ("id_str",), ("rest_id",)]
TEXT_PATHS = [("full_text",), ("text",)]
NAME_PATHS = [("user", "name"), ("author_name",), ("authorName",)]
HANDLE_PATHS = [("user", "screen_name"), ("author_handle",), ("authorHandle",)]
CREATED_AT_PATHS = [("created_at",), ("createdAt",)]
QUOTED_PATHS = [("quoted_tweet",), ("quotedTweet",), ("quoted_status",)]

MEDIA_KINDS = {"video": "video", "animated_gif": "gif", "gif": "gif"}


def _pick(obj: dict, paths: list[tuple[str, ...]]):
    """Return the value at the first key path that resolves to non-None."""
    for path in paths:
        current = obj
        for key in path:
            if not isinstance(current, dict):
                current = None
                break
            current = current.get(key)
        if current is not None:
            return current
    return None


def _as_str(value) -> str:
    return "" if value is None else str(value)


def media_kind(raw_type: str | None) -> str:
    """Map a vendor media type onto photo/video/gif."""
    return MEDIA_KINDS.get(raw_type or "", "photo")


def _parse_media(tweet: dict) -> list[MediaItem]:
    flat = tweet.get("media")
    if isinstance(flat, list):
        raw_media = flat
    else:
        entities = tweet.get("extended_entities") or tweet.get("entities")
        raw_media = entities.get("media") if isinstance(entities, dict) else None
        if not isinstance(raw_media, list):
            return []

    media = []
    for m in raw_media:
        if not isinstance(m, dict):
            continue
        alt_text = _pick(m, [("alt_text",), ("altText",), ("ext_alt_text",)])
        media.append(
            MediaItem(
                kind=media_kind(m.get("kind") or m.get("type")),
                url=_as_str(_pick(m, [("media_url_https",), ("url",)])),
                alt_text=str(alt_text) if alt_text else None,
            )
        )
    return media


def _parse_metrics(tweet: dict) -> Metrics | None:
    flat = tweet.get("metrics")
    if isinstance(flat, dict):
        views = flat.get("views")
        return Metrics(
            likes=int(flat.get("likes") or 0),
            retweets=int(flat.get("retweets") or 0),
            replies=int(flat.get("replies") or 0),
            views=int(views) if views is not None else None,
        )

    if tweet.get("favorite_count") is None:
        return None

    views = tweet.get("views")
    if isinstance(views, dict):
        views = views.get("count")
    return Metrics(
        likes=int(tweet.get("favorite_count") or 0),
        retweets=int(tweet.get("retweet_count") or 0),
        replies=int(tweet.get("reply_count") or 0),
        views=int(views) if views not in (None, "") else None,
    )


def normalize_bookmark(raw: dict) -> Bookmark | None:
    """Normalize one import record. Returns None when no id can be found."""
    if not isinstance(raw, dict):
        return None
    tweet = raw.get("tweet") if isinstance(raw.get("tweet"), dict) else raw
    # Native exports sometimes keep the user next to the tweet, not inside it
    if "user" not in tweet and isinstance(raw.get("user"), dict):
        tweet = {**tweet, "user": raw["user"]}

    bookmark_id = _as_str(_pick(tweet, ID_PATHS))
    if not bookmark_id:
        return None

    handle = _as_str(_pick(tweet, HANDLE_PATHS))
    url = _as_str(tweet.get("url"))
    if not url:
        url = (
            f"https://x.com/{handle}/status/{bookmark_id}"
            if handle
            else f"https://x.com/i/status/{bookmark_id}"
        )

    quoted_raw = _pick(tweet, QUOTED_PATHS)
    quoted = normalize_bookmark(quoted_raw) if isinstance(quoted_raw, dict) else None

    return Bookmark(
        id=bookmark_id,
        text=_as_str(_pick(tweet, TEXT_PATHS)),
        author_name=_as_str(_pick(tweet, NAME_PATHS)),
        author_handle=handle,
        created_at=_as_str(_pick(tweet, CREATED_AT_PATHS)),
        url=url,
        media=_parse_media(tweet),
        metrics=_parse_metrics(tweet),
        quoted_tweet=quoted,
    )


def normalize_document(data) -> list[Bookmark]:
    """Normalize a decoded import document into bookmarks, dropping id-less records."""
    if isinstance(data, list):
        records = data
    elif isinstance(data, dict):
        records = data.get("bookmarks") or []
    else:
        raise ValueError(
            "Import document must be a JSON array or an object with a "
            "'bookmarks' array"
        )

    bookmarks = []
    for index, record in enumerate(records):
        try:
            bookmark = normalize_bookmark(record)
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed import record %d: %s", index, e)
            continue
        if bookmark is None:
            logger.debug("Skipping import record without an id")
            continue
        bookmarks.append(bookmark)
    return bookmarks


class JsonImporter:
    """Bookmark source backed by a static JSON file.

    The file is read once; later calls page over the in-memory list using
    the integer offset carried in ``cursor``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._bookmarks: list[Bookmark] | None = None

    def _load(self) -> list[Bookmark]:
        if self._bookmarks is None:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self._bookmarks = normalize_document(data)
            logger.info(
                "Imported %d bookmarks from %s", len(self._bookmarks), self.path
            )
        return self._bookmarks

    def fetch(self, limit: int | None = None, cursor: str | None = None) -> FetchResult:
        bookmarks = self._load()
        total = len(bookmarks)
        if limit is None:
            limit = total

        try:
            offset = int(cursor) if cursor else 0
        except ValueError:
            raise ValueError(f"Invalid import cursor: {cursor!r}") from None

        end = offset + limit
        return FetchResult(
            bookmarks=bookmarks[offset:end],
            cursor=str(end) if end < total else None,
        )


def load_bookmarks(path: Path) -> list[Bookmark]:
    """Load every bookmark from an import or ``fetch`` output file."""
    return JsonImporter(path).fetch().bookmarks


def load_classified(path: Path) -> ClassificationResult:
    """Load a ClassificationResult written by ``classify`` or ``sync``."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    items = []
    for raw in data.get("items", []):
        bookmark = normalize_bookmark(raw.get("bookmark") or {})
        if bookmark is None or not raw.get("category"):
            logger.warning("Skipping classified item without id or category")
            continue
        items.append(
            ClassifiedBookmark(
                bookmark=bookmark,
                category=str(raw["category"]),
                subcategory=raw.get("subcategory") or None,
                tags=tuple(raw.get("tags") or ()),
                summary=_as_str(raw.get("summary")),
            )
        )
    return ClassificationResult(
        items=items, categories=list(data.get("categories", []))
    )
