"""X GraphQL API client for fetching bookmarks.

Authentication reuses the browser session: the full cookie string is sent
as-is and its ``ct0`` value doubles as the CSRF token. The bearer token is a
static, public token embedded in X's web client JS; all web clients share it.

The query ID rotates; it is resolved from the web bundle by a
QueryIdResolver unless pinned. Environment overrides:
    TWEETVAULT_QUERY_ID
    TWEETVAULT_BEARER_TOKEN
"""

import json
import logging
import os
import re
import time
from collections.abc import Callable

import httpx

from .models import Bookmark, FetchResult
from .parser import parse_timeline_response
from .query_id import USER_AGENT, QueryIdResolver

logger = logging.getLogger(__name__)

# Static bearer token used by X's web client (public, not a user secret)
BEARER_TOKEN = os.environ.get(
    "TWEETVAULT_BEARER_TOKEN",
    "AAAAAAAAAAAAAAAAAAAAANRILgAAAAAAnNwIzUejRCOuH5E6I8xnZz4puTs"
    "%3D1Zv7ttfk8LF81IUq16cHjhLTvJu4FA33AGWWjCpTnA",
)

GRAPHQL_URL = "https://x.com/i/api/graphql/{query_id}/Bookmarks"

PAGE_SIZE = 20

# Feature flags the server requires on every Bookmarks request
BOOKMARKS_FEATURES = {
    "graphql_timeline_v2_bookmark_timeline": True,
    "responsive_web_graphql_exclude_directive_enabled": True,
    "verified_phone_label_enabled": False,
    "responsive_web_graphql_timeline_navigation_enabled": True,
    "responsive_web_graphql_skip_user_profile_image_extensions_enabled": False,
    "creator_subscriptions_tweet_preview_api_enabled": True,
    "communities_web_enable_tweet_community_results_fetch": True,
    "c9s_tweet_anatomy_moderator_badge_enabled": True,
    "tweetypie_unmention_optimization_enabled": True,
    "responsive_web_edit_tweet_api_enabled": True,
    "longform_notetweets_consumption_enabled": True,
    "responsive_web_media_download_video_enabled": False,
    "responsive_web_enhance_cards_enabled": False,
}

CSRF_RE = re.compile(r"ct0=([^;]+)")

STATUS_HINTS = {
    400: "The feature flags or query parameters may be outdated.",
    401: "Your cookie may be expired. Copy a fresh one from the browser.",
    403: "Your cookie may be expired. Copy a fresh one from the browser.",
    404: (
        "The GraphQL query ID is stale. Set TWEETVAULT_QUERY_ID to the ID "
        "between /graphql/ and /Bookmarks in the browser's request URL."
    ),
    429: "Rate limited by X.",
}


def extract_csrf_token(cookie: str) -> str:
    match = CSRF_RE.search(cookie or "")
    if not match:
        raise ValueError(
            "Invalid cookie: missing ct0 (CSRF token). Make sure to include "
            "the full cookie string from your browser."
        )
    return match.group(1).strip()


class XClient:
    """Bookmark source backed by X's internal GraphQL API using cookie auth."""

    def __init__(
        self,
        cookie: str,
        query_id: str | None = None,
        resolver: QueryIdResolver | None = None,
        page_size: int = PAGE_SIZE,
        delay: float = 0,
    ):
        csrf_token = extract_csrf_token(cookie)
        self._query_id = query_id or os.environ.get("TWEETVAULT_QUERY_ID") or None
        self._resolver = resolver
        self._page_size = page_size
        self._delay = delay
        self._client = httpx.Client(
            headers={
                "authorization": f"Bearer {BEARER_TOKEN}",
                "cookie": cookie,
                "x-csrf-token": csrf_token,
                "x-twitter-active-user": "yes",
                "x-twitter-auth-type": "OAuth2Session",
                "content-type": "application/json",
                "User-Agent": USER_AGENT,
            },
            timeout=30.0,
            follow_redirects=True,
        )

    @property
    def query_id(self) -> str:
        if self._query_id is None:
            resolver = self._resolver or QueryIdResolver()
            self._query_id = resolver.resolve()
        return self._query_id

    def fetch(self, limit: int | None = None, cursor: str | None = None) -> FetchResult:
        """Fetch a single page of bookmarks."""
        variables: dict = {
            "count": limit or self._page_size,
            "includePromotedContent": False,
        }
        if cursor:
            variables["cursor"] = cursor

        params = {
            "variables": json.dumps(variables),
            "features": json.dumps(BOOKMARKS_FEATURES),
        }

        response = self._client.get(
            GRAPHQL_URL.format(query_id=self.query_id), params=params
        )
        _raise_for_status(response)
        return parse_timeline_response(response.json())

    def fetch_all(
        self,
        limit: int,
        on_progress: Callable[[int], None] | None = None,
    ) -> list[Bookmark]:
        """Fetch up to ``limit`` bookmarks following the bottom cursor.

        Stops early when a page has no items or no cursor.
        """
        bookmarks: list[Bookmark] = []
        cursor: str | None = None

        while len(bookmarks) < limit:
            if bookmarks and self._delay > 0:
                logger.debug("Sleeping %.1fs before next request...", self._delay)
                time.sleep(self._delay)

            count = min(self._page_size, limit - len(bookmarks))
            page = self.fetch(limit=count, cursor=cursor)
            bookmarks.extend(page.bookmarks)
            logger.info(
                "Fetched %d bookmarks (total: %d)", len(page.bookmarks), len(bookmarks)
            )
            if on_progress:
                on_progress(len(bookmarks))

            if not page.bookmarks or not page.has_more:
                logger.info("No more entries. Pagination complete.")
                break
            cursor = page.cursor

        return bookmarks[:limit]

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    hint = STATUS_HINTS.get(response.status_code, "")
    if response.status_code == 429:
        reset_time = response.headers.get("x-rate-limit-reset")
        if reset_time and reset_time.isdigit():
            wait_seconds = int(reset_time) - int(time.time())
            if wait_seconds > 0:
                hint += f" Retry in {wait_seconds}s."
    message = f"X API error {response.status_code}: {response.text[:200]}"
    if hint:
        message += f"\n{hint}"
    raise RuntimeError(message)
