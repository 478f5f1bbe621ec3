"""Tests for the markdown renderer."""

from tweetvault.markdown import (
    format_date,
    make_filename,
    render_bookmark,
    render_category_index,
    render_vault_index,
)
from tweetvault.models import Bookmark, ClassifiedBookmark


class TestFormatDate:
    def test_twitter_format(self):
        assert format_date("Mon Feb 10 18:30:00 +0000 2025") == "2025-02-10"

    def test_iso_format(self):
        assert format_date("2025-02-08T09:00:00Z") == "2025-02-08"

    def test_converts_to_utc(self):
        assert format_date("2025-02-08T23:30:00-05:00") == "2025-02-09"

    def test_unparseable_passes_through(self):
        assert format_date("sometime last week") == "sometime last week"


class TestMakeFilename:
    def test_handle_and_id(self, classified_items):
        assert make_filename(classified_items[0]) == "testuser-1234567890"

    def test_missing_handle(self):
        item = ClassifiedBookmark(bookmark=Bookmark(id="7"), category="X")
        assert make_filename(item) == "unknown-7"


class TestRenderBookmark:
    def test_front_matter(self, classified_items):
        md = render_bookmark(classified_items[0])
        front_matter = md.split("---")[1]
        assert 'title: "Tweet by @testuser"' in front_matter
        assert 'author: "@testuser"' in front_matter
        assert 'author_name: "Test User"' in front_matter
        assert 'date: "2025-02-10"' in front_matter
        assert 'url: "https://x.com/testuser/status/1234567890"' in front_matter
        assert 'category: "Tech"' in front_matter
        assert 'subcategory: "Web"' in front_matter
        assert 'tags: ["links", "reading"]' in front_matter

    def test_optional_fields_omitted(self, classified_items):
        md = render_bookmark(classified_items[2])
        assert "subcategory:" not in md
        assert "tags: []" in md

    def test_unparsed_date_is_quoted(self):
        item = ClassifiedBookmark(
            bookmark=Bookmark(id="1", author_handle="a", created_at="approx: late 2024 #guess"),
            category="Tech",
        )
        assert 'date: "approx: late 2024 #guess"' in render_bookmark(item)

    def test_quotes_are_escaped(self):
        item = ClassifiedBookmark(
            bookmark=Bookmark(id="1", author_handle="a", author_name='Say "hi"'),
            category="Tech",
        )
        assert 'author_name: "Say \\"hi\\""' in render_bookmark(item)

    def test_body(self, classified_items):
        md = render_bookmark(classified_items[0])
        assert "> A link to an article" in md
        assert "This is a test tweet with a link" in md
        assert md.endswith("[View on X](https://x.com/testuser/status/1234567890)")

    def test_metrics_line(self, classified_items):
        md = render_bookmark(classified_items[0])
        assert "*42 likes · 7 retweets · 3 replies*" in md

    def test_no_metrics_line_without_metrics(self, classified_items):
        assert "likes" not in render_bookmark(classified_items[2])

    def test_media(self, classified_items):
        md = render_bookmark(classified_items[1])
        assert "## Media" in md
        assert "![A chart](https://pbs.twimg.com/media/test123.jpg)" in md
        assert "- [video](https://video.twimg.com/v.mp4)" in md

    def test_media_can_be_excluded(self, classified_items):
        md = render_bookmark(classified_items[1], include_media=False)
        assert "## Media" not in md
        assert "test123.jpg" not in md


class TestIndexes:
    def test_category_index(self, classified_items):
        tech = [classified_items[0], classified_items[2]]
        md = render_category_index("Tech", tech)
        assert "type: category-index" in md
        assert "count: 2" in md
        assert "# Tech" in md
        assert "- [[testuser-1234567890|@testuser]]: A link to an article" in md
        assert "- [[quoter-5555555555|@quoter]]: A hot take" in md

    def test_vault_index(self, classified_items):
        groups = {
            "Tech": [classified_items[0], classified_items[2]],
            "Design": [classified_items[1]],
        }
        md = render_vault_index("My Vault", groups)
        assert "# My Vault" in md
        assert "3 bookmarks across 2 categories." in md
        assert "- **[[Tech/_index|Tech]]** (2)" in md
        assert "- **[[Design/_index|Design]]** (1)" in md
