"""Full pipeline: fetch -> classify -> generate.

Stages run strictly in order, each consuming the whole output of the one
before. Exceptions from any stage reach the caller unchanged; notes already
written stay on disk.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from .classifier import Classifier
from .client import XClient
from .importer import JsonImporter
from .models import Bookmark, ClassificationResult, VaultOptions
from .providers import requires_api_key, resolve_provider
from .query_id import QueryIdResolver
from .vault import generate_vault

logger = logging.getLogger(__name__)


@dataclass
class SyncConfig:
    provider: str
    output_dir: Path
    api_key: str | None = None
    model: str | None = None
    base_url: str | None = None
    input_path: Path | None = None
    cookie: str | None = None
    limit: int = 100
    delay: float = 0
    query_id: str | None = None
    batch_size: int | None = None
    categories: list[str] = field(default_factory=list)
    language: str | None = None
    vault_name: str = "TweetVault"
    create_index: bool = True
    include_media: bool = True


@dataclass
class SyncProgress:
    step: int  # 1 fetch, 2 classify, 3 generate
    detail: str


@dataclass
class SyncResult:
    files_created: int
    categories: list[str]
    output_dir: Path
    bookmark_count: int
    classification: ClassificationResult


ProgressCallback = Callable[[SyncProgress], None]


def check_source(config: SyncConfig) -> None:
    if not config.input_path and not config.cookie:
        raise ValueError("No cookie or input file. Provide a cookie or an input path.")


def check_credentials(config: SyncConfig) -> None:
    # Raises ValueError for an unknown provider without a base URL
    resolve_provider(config.provider, base_url=config.base_url, model=config.model)
    if requires_api_key(config.provider) and not config.api_key:
        raise ValueError(
            f"API key required for {config.provider}. Use --api-key or set it in config."
        )


def fetch_bookmarks(
    config: SyncConfig,
    on_progress: ProgressCallback | None = None,
    resolver: QueryIdResolver | None = None,
) -> list[Bookmark]:
    """Stage 1: read the import file, or page through the live API up to ``limit``."""
    notify = on_progress or (lambda progress: None)
    check_source(config)

    if config.input_path:
        bookmarks = JsonImporter(config.input_path).fetch().bookmarks
        notify(SyncProgress(1, f"Imported {len(bookmarks)} bookmarks"))
        return bookmarks

    with XClient(
        config.cookie,
        query_id=config.query_id,
        resolver=resolver,
        delay=config.delay,
    ) as client:
        bookmarks = client.fetch_all(
            config.limit,
            on_progress=lambda count: notify(
                SyncProgress(1, f"Fetched {count} bookmarks...")
            ),
        )
    notify(SyncProgress(1, f"Fetched {len(bookmarks)} bookmarks"))
    return bookmarks


def sync_bookmarks(
    config: SyncConfig,
    on_progress: ProgressCallback | None = None,
    resolver: QueryIdResolver | None = None,
    http_client: httpx.Client | None = None,
) -> SyncResult:
    """Run all three stages and summarize the result.

    Args:
        config: Source, provider and vault settings.
        on_progress: Called synchronously with stage progress updates.
        resolver: Query ID resolver shared across syncs in this process.
        http_client: HTTP client for AI provider calls.
    """
    notify = on_progress or (lambda progress: None)
    check_source(config)
    check_credentials(config)

    notify(SyncProgress(1, "Fetching bookmarks..."))
    bookmarks = fetch_bookmarks(config, on_progress, resolver)
    if not bookmarks:
        raise RuntimeError("No bookmarks fetched; nothing to classify.")

    notify(SyncProgress(2, f"Classifying {len(bookmarks)} bookmarks with {config.provider}..."))
    with Classifier(
        config.provider,
        api_key=config.api_key,
        model=config.model,
        base_url=config.base_url,
        http_client=http_client,
    ) as classifier:
        classification = classifier.classify(
            bookmarks,
            categories=config.categories or None,
            language=config.language,
            batch_size=config.batch_size,
            on_batch=lambda index, total: notify(
                SyncProgress(2, f"Classifying batch {index}/{total}...")
            ),
        )
    notify(SyncProgress(2, f"Classified into {len(classification.categories)} categories"))

    notify(SyncProgress(3, "Generating vault..."))
    generated = generate_vault(
        classification.items,
        VaultOptions(
            output_dir=Path(config.output_dir),
            vault_name=config.vault_name,
            create_index=config.create_index,
            include_media=config.include_media,
        ),
    )
    notify(SyncProgress(3, f"Generated {generated.files_created} files"))
    logger.info(
        "Sync complete: %d bookmarks, %d files in %s",
        len(bookmarks), generated.files_created, generated.output_dir,
    )

    return SyncResult(
        files_created=generated.files_created,
        categories=classification.categories,
        output_dir=generated.output_dir,
        bookmark_count=len(bookmarks),
        classification=classification,
    )
