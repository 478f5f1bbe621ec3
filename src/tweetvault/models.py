"""Data models for bookmarks, classification results and vault output."""

from dataclasses import asdict, dataclass, field
from pathlib import Path


@dataclass
class MediaItem:
    kind: str  # "photo", "video", "gif"
    url: str
    alt_text: str | None = None


@dataclass
class Metrics:
    likes: int = 0
    retweets: int = 0
    replies: int = 0
    views: int | None = None


@dataclass
class Bookmark:
    id: str
    text: str = ""
    author_name: str = ""
    author_handle: str = ""  # screen_name without @
    created_at: str = ""  # source-format timestamp, kept verbatim
    url: str = ""
    media: list[MediaItem] = field(default_factory=list)
    metrics: Metrics | None = None
    quoted_tweet: "Bookmark | None" = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassifiedBookmark:
    bookmark: Bookmark
    category: str
    tags: tuple[str, ...] = ()
    summary: str = ""
    subcategory: str | None = None

    def to_dict(self) -> dict:
        return {
            "bookmark": self.bookmark.to_dict(),
            "category": self.category,
            "subcategory": self.subcategory,
            "tags": list(self.tags),
            "summary": self.summary,
        }


@dataclass
class ClassificationResult:
    items: list[ClassifiedBookmark] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "categories": list(self.categories),
        }


@dataclass
class FetchResult:
    """One page of bookmarks. ``has_more`` is derived from ``cursor``."""

    bookmarks: list[Bookmark] = field(default_factory=list)
    cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return bool(self.cursor)


@dataclass
class VaultOptions:
    output_dir: Path
    vault_name: str = "TweetVault"
    create_index: bool = True
    include_media: bool = True


@dataclass
class GenerateResult:
    files_created: int
    categories: list[str]
    output_dir: Path
