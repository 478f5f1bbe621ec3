"""Shared test fixtures."""

import json
from pathlib import Path

import pytest
import respx

from tweetvault.models import Bookmark, ClassifiedBookmark, MediaItem, Metrics

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _isolate_respx_routes():
    """Drop routes left on the global respx router so they cannot leak between tests."""
    yield
    respx.mock.clear()


@pytest.fixture
def bookmarks_response() -> dict:
    """Load the sample GraphQL bookmarks response."""
    with open(FIXTURES_DIR / "bookmarks_response.json") as f:
        return json.load(f)


@pytest.fixture
def empty_response() -> dict:
    return {
        "data": {
            "bookmark_timeline_v2": {
                "timeline": {
                    "instructions": [
                        {"type": "TimelineAddEntries", "entries": []}
                    ]
                }
            }
        }
    }


@pytest.fixture
def sample_bookmarks() -> list[Bookmark]:
    """A list of sample Bookmark objects for testing."""
    return [
        Bookmark(
            id="1234567890",
            text="This is a test tweet with a link https://example.com/article",
            author_name="Test User",
            author_handle="testuser",
            created_at="Mon Feb 10 18:30:00 +0000 2025",
            url="https://x.com/testuser/status/1234567890",
            metrics=Metrics(likes=42, retweets=7, replies=3),
        ),
        Bookmark(
            id="9876543210",
            text="Check out this image",
            author_name="Photo User",
            author_handle="photouser",
            created_at="Sun Feb 09 12:00:00 +0000 2025",
            url="https://x.com/photouser/status/9876543210",
            media=[
                MediaItem(
                    kind="photo",
                    url="https://pbs.twimg.com/media/test123.jpg",
                    alt_text="A chart",
                ),
                MediaItem(kind="video", url="https://video.twimg.com/v.mp4"),
            ],
        ),
        Bookmark(
            id="5555555555",
            text="Great take on this topic",
            author_name="The Quoter",
            author_handle="quoter",
            created_at="2025-02-08T09:00:00Z",
            url="https://x.com/quoter/status/5555555555",
        ),
    ]


@pytest.fixture
def classified_items(sample_bookmarks) -> list[ClassifiedBookmark]:
    tech, photo, quote = sample_bookmarks
    return [
        ClassifiedBookmark(
            bookmark=tech,
            category="Tech",
            subcategory="Web",
            tags=("links", "reading"),
            summary="A link to an article",
        ),
        ClassifiedBookmark(
            bookmark=photo,
            category="Design",
            tags=("charts",),
            summary="A chart image",
        ),
        ClassifiedBookmark(
            bookmark=quote,
            category="Tech",
            tags=(),
            summary="A hot take",
        ),
    ]
