"""Parse X GraphQL Bookmarks responses into Bookmark records.

The response nests tweet data deeply:
    data -> <timeline root> -> timeline -> instructions[] -> entries[]
    entry -> content -> itemContent -> tweet_results -> result

The timeline root differs between server-side experiment cohorts, results may
be wrapped in a TweetWithVisibilityResults container, and the author's
identity fields moved from ``legacy`` to ``core`` in 2025. Every one of these
is handled by trying the known locations in order.
"""

import logging

from .importer import media_kind
from .models import Bookmark, FetchResult, MediaItem, Metrics

logger = logging.getLogger(__name__)

INSTRUCTION_PATHS = [
    ("data", "bookmark_timeline_v2", "timeline", "instructions"),
    (
        "data",
        "search_by_raw_query",
        "bookmarks_search_timeline",
        "timeline",
        "instructions",
    ),
]

# Where a user-like dict carrying screen_name/name may live under tweet.core.
# The 2025 location (result.core) takes precedence over result.legacy.
USER_PATHS = [
    ("user_results", "result", "core"),
    ("user_results", "result", "legacy"),
    ("user_results", "result"),
    ("user_result", "result", "core"),
    ("user_result", "result", "legacy"),
    ("user_result", "result"),
]


def _get_path(obj, path: tuple[str, ...]):
    current = obj
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def find_instructions(data: dict) -> list[dict] | None:
    """Return the instruction list from the first root path that has one."""
    for path in INSTRUCTION_PATHS:
        instructions = _get_path(data, path)
        if isinstance(instructions, list):
            return instructions
    return None


def parse_timeline_response(data: dict) -> FetchResult:
    """Extract bookmarks and the bottom cursor from one GraphQL page.

    A response without any instruction list is treated as an empty page.
    """
    instructions = find_instructions(data)
    if instructions is None:
        logger.warning("Response has no timeline instructions; treating as empty page")
        return FetchResult()

    add_entries = next(
        (i for i in instructions if i.get("type") == "TimelineAddEntries"), {}
    )

    bookmarks: list[Bookmark] = []
    cursor: str | None = None

    for entry in add_entries.get("entries", []):
        entry_id = entry.get("entryId", "")
        if entry_id.startswith("tweet-"):
            result = _get_path(entry, ("content", "itemContent", "tweet_results", "result"))
            try:
                bookmark = parse_tweet_result(result)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed entry %s: %s", entry_id, e)
                continue
            if bookmark:
                bookmarks.append(bookmark)
            else:
                logger.debug("Skipping unparseable entry %s", entry_id)
        elif entry_id.startswith("cursor-bottom-"):
            cursor = _get_path(entry, ("content", "value")) or None

    return FetchResult(bookmarks=bookmarks, cursor=cursor)


def _extract_user(tweet: dict, tweet_id: str = "") -> tuple[str, str]:
    """Return (screen_name, name) from the first location that has a handle."""
    core = tweet.get("core") or {}
    for path in USER_PATHS:
        candidate = _get_path(core, path)
        if isinstance(candidate, dict) and candidate.get("screen_name"):
            logger.debug("tweet %s: user resolved via core.%s", tweet_id, ".".join(path))
            return candidate["screen_name"], candidate.get("name", "")

    found = _deep_find_user(core)
    if found:
        logger.debug("tweet %s: user resolved via deep search", tweet_id)
        return found["screen_name"], found.get("name", "")

    logger.warning("tweet %s: could not resolve author; core keys: %s", tweet_id, list(core))
    return "", ""


def _deep_find_user(obj: object, max_depth: int = 6) -> dict | None:
    """Recursively search for a dict containing both 'screen_name' and 'name'."""
    if max_depth <= 0 or not isinstance(obj, (dict, list)):
        return None
    if isinstance(obj, dict):
        if "screen_name" in obj and "name" in obj:
            return obj
        children = obj.values()
    else:
        children = obj
    for value in children:
        found = _deep_find_user(value, max_depth - 1)
        if found:
            return found
    return None


def parse_tweet_result(result: dict | None) -> Bookmark | None:
    """Parse a tweet_results.result object. Returns None if it has no tweet body."""
    if not result:
        return None

    if result.get("__typename") == "TweetWithVisibilityResults":
        result = result.get("tweet") or {}

    legacy = result.get("legacy")
    tweet_id = str(result.get("rest_id") or "")
    if not legacy or not tweet_id or result.get("__typename") == "TweetTombstone":
        return None

    screen_name, name = _extract_user(result, tweet_id)

    entities = legacy.get("entities") or {}
    text = _expand_urls_in_text(legacy.get("full_text", ""), entities.get("urls") or [])
    for media_entity in entities.get("media") or []:
        media_url = media_entity.get("url", "")
        if media_url:
            text = text.replace(media_url, "").strip()

    media = [
        MediaItem(
            kind=media_kind(m.get("type")),
            url=m.get("media_url_https", ""),
            alt_text=m.get("ext_alt_text") or None,
        )
        for m in (legacy.get("extended_entities") or {}).get("media") or []
    ]

    views = (result.get("views") or {}).get("count")
    metrics = Metrics(
        likes=int(legacy.get("favorite_count") or 0),
        retweets=int(legacy.get("retweet_count") or 0),
        replies=int(legacy.get("reply_count") or 0),
        views=int(views) if views else None,
    )

    quoted = None
    quoted_result = _get_path(result, ("quoted_status_result", "result"))
    if quoted_result:
        try:
            quoted = parse_tweet_result(quoted_result)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug("tweet %s: dropping malformed quoted tweet: %s", tweet_id, e)

    url = (
        f"https://x.com/{screen_name}/status/{tweet_id}"
        if screen_name
        else f"https://x.com/i/status/{tweet_id}"
    )

    return Bookmark(
        id=tweet_id,
        text=text,
        author_name=name,
        author_handle=screen_name,
        created_at=legacy.get("created_at", ""),
        url=url,
        media=media,
        metrics=metrics,
        quoted_tweet=quoted,
    )


def _expand_urls_in_text(text: str, url_entities: list[dict]) -> str:
    """Replace t.co shortened URLs in text with their expanded versions."""
    for entity in url_entities:
        short_url = entity.get("url", "")
        if short_url:
            text = text.replace(short_url, entity.get("expanded_url", short_url))
    return text
