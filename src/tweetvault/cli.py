"""CLI interface for tweetvault.

Commands:
    setup      - Store provider, API key and cookie in the config file
    fetch      - Fetch bookmarks (cookie or JSON import) and save as JSON
    classify   - Classify a bookmarks JSON file with an AI provider
    generate   - Build the vault from a classified JSON file
    sync       - fetch -> classify -> generate in one go
    providers  - List supported AI providers
"""

import json
import sys
from pathlib import Path

import click
import httpx

from .config import (
    CONFIG_FILE,
    AIConfig,
    AppConfig,
    config_exists,
    load_config,
    load_config_or_default,
    save_config,
)
from .logging_config import setup_logging

CLI_ERRORS = (ValueError, RuntimeError, OSError, httpx.HTTPError)

provider_options = [
    click.option("-p", "--provider", default=None, help="AI provider (see `providers`)"),
    click.option(
        "-k", "--api-key", envvar="TWEETVAULT_API_KEY", default=None,
        help="API key for the AI provider",
    ),
    click.option("-m", "--model", default=None, help="Model name"),
    click.option("--base-url", default=None, help="Custom API base URL"),
]

source_options = [
    click.option("-c", "--cookie", default=None, help="X cookie string (must contain ct0)"),
    click.option(
        "-i", "--input", "input_path", type=click.Path(exists=True, dir_okay=False),
        default=None, help="Import from a JSON file instead of fetching",
    ),
    click.option("-l", "--limit", type=int, default=None, help="Max bookmarks to fetch"),
    click.option("--delay", type=float, default=None, help="Delay in seconds between API requests"),
]


def _apply(options):
    def decorator(f):
        for option in reversed(options):
            f = option(f)
        return f
    return decorator


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _write_json(path: Path, data) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def _sync_config(config: AppConfig, **overrides):
    from .sync import SyncConfig

    ai = config.ai
    input_path = overrides.get("input_path")
    cookie = overrides.get("cookie")
    # An explicit source on the command line replaces the configured one
    if not input_path and not cookie:
        input_path, cookie = config.input_path, config.cookie

    limit = overrides.get("limit")
    delay = overrides.get("delay")
    output = overrides.get("output")
    return SyncConfig(
        provider=overrides.get("provider") or ai.provider,
        api_key=overrides.get("api_key") or ai.api_key,
        model=overrides.get("model") or ai.model,
        base_url=overrides.get("base_url") or ai.base_url,
        input_path=Path(input_path) if input_path else None,
        cookie=cookie,
        output_dir=Path(output) if output else config.output_dir,
        limit=limit if limit is not None else config.limit,
        delay=delay if delay is not None else config.fetch_delay,
        query_id=config.query_id,
        batch_size=overrides.get("batch_size"),
        categories=overrides.get("categories") or [],
        language=overrides.get("language") or config.language,
        vault_name=overrides.get("name") or config.vault_name,
        create_index=config.create_index,
        include_media=config.include_media,
    )


def _split_categories(value: str | None) -> list[str]:
    return [c.strip() for c in (value or "").split(",") if c.strip()]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """TweetVault: export X bookmarks, classify them with AI, build an Obsidian vault."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


@main.command()
@click.pass_context
def setup(ctx):
    """Store AI provider settings and the X cookie."""
    config_path = ctx.obj["config_path"]
    config = load_config(config_path) if config_exists(config_path) else AppConfig()

    click.echo("TweetVault Setup")
    click.echo("=" * 40)
    provider = click.prompt("AI provider", default=config.ai.provider)
    api_key = click.prompt(
        "API key (empty for ollama)", default="", hide_input=True, show_default=False
    )

    click.echo()
    click.echo("To get your X cookie:")
    click.echo("  1. Open x.com in your browser and log in")
    click.echo("  2. Open DevTools (F12) -> Network, reload, pick any x.com request")
    click.echo("  3. Copy the whole 'cookie' request header (it must contain ct0=)")
    cookie = click.prompt("cookie", default="", hide_input=True, show_default=False)
    output_dir = click.prompt("Vault directory", default=str(config.output_dir))

    config.ai = AIConfig(
        provider=provider,
        api_key=api_key or config.ai.api_key,
        model=config.ai.model,
        base_url=config.ai.base_url,
    )
    config.cookie = cookie or config.cookie
    config.output_dir = Path(output_dir)

    save_config(config, config_path)
    click.echo(f"\nConfig saved to {config_path}")
    click.echo("Run 'tweetvault sync' to build your vault.")


@main.command()
@_apply(source_options)
@click.option("-o", "--output", type=click.Path(), default="bookmarks.json", help="Output file")
@click.pass_context
def fetch(ctx, cookie, input_path, limit, delay, output):
    """Fetch bookmarks from X (or a JSON import) and save them as JSON."""
    from .query_id import QueryIdResolver
    from .sync import fetch_bookmarks

    config = load_config_or_default(ctx.obj["config_path"])
    sync_config = _sync_config(
        config, cookie=cookie, input_path=input_path, limit=limit, delay=delay
    )

    try:
        bookmarks = fetch_bookmarks(
            sync_config,
            on_progress=lambda p: click.echo(p.detail),
            resolver=QueryIdResolver(),
        )
        _write_json(Path(output), [b.to_dict() for b in bookmarks])
    except CLI_ERRORS as e:
        _fail(e)

    click.echo(f"Saved {len(bookmarks)} bookmarks to {output}")


@main.command()
@click.option(
    "-i", "--input", "input_path", type=click.Path(exists=True, dir_okay=False),
    default="bookmarks.json", help="Bookmarks JSON file",
)
@click.option("-o", "--output", type=click.Path(), default="classified.json", help="Output file")
@_apply(provider_options)
@click.option("--categories", default=None, help="Comma-separated categories to use")
@click.option("--language", default=None, help="Language for summaries")
@click.option("--batch-size", type=int, default=None, help="Bookmarks per AI request")
@click.pass_context
def classify(ctx, input_path, output, provider, api_key, model, base_url,
             categories, language, batch_size):
    """Classify bookmarks with an AI provider."""
    from .classifier import Classifier
    from .importer import load_bookmarks
    from .sync import check_credentials

    config = load_config_or_default(ctx.obj["config_path"])
    sync_config = _sync_config(
        config, provider=provider, api_key=api_key, model=model,
        base_url=base_url, language=language,
    )

    try:
        check_credentials(sync_config)
        bookmarks = load_bookmarks(Path(input_path))
        click.echo(f"Classifying {len(bookmarks)} bookmarks with {sync_config.provider}...")
        with Classifier(
            sync_config.provider,
            api_key=sync_config.api_key,
            model=sync_config.model,
            base_url=sync_config.base_url,
        ) as classifier:
            result = classifier.classify(
                bookmarks,
                categories=_split_categories(categories) or None,
                language=sync_config.language,
                batch_size=batch_size,
                on_batch=lambda i, total: click.echo(f"Batch {i}/{total}..."),
            )
        _write_json(Path(output), result.to_dict())
    except CLI_ERRORS as e:
        _fail(e)

    click.echo(
        f"Classified {len(result.items)} bookmarks into "
        f"{len(result.categories)} categories"
    )
    click.echo(f"Categories: {', '.join(result.categories)}")
    click.echo(f"Saved to {output}")


@main.command()
@click.option(
    "-i", "--input", "input_path", type=click.Path(exists=True, dir_okay=False),
    default="classified.json", help="Classified JSON file",
)
@click.option("-o", "--output", type=click.Path(), default=None, help="Vault directory")
@click.option("-n", "--name", default=None, help="Vault name")
@click.option("--index/--no-index", default=None, help="Create index files")
@click.option("--media/--no-media", default=None, help="Include media sections")
@click.pass_context
def generate(ctx, input_path, output, name, index, media):
    """Generate an Obsidian vault from classified bookmarks."""
    from .importer import load_classified
    from .models import VaultOptions
    from .vault import generate_vault

    config = load_config_or_default(ctx.obj["config_path"])
    options = VaultOptions(
        output_dir=Path(output) if output else config.output_dir,
        vault_name=name or config.vault_name,
        create_index=config.create_index if index is None else index,
        include_media=config.include_media if media is None else media,
    )

    try:
        classified = load_classified(Path(input_path))
        result = generate_vault(classified.items, options)
    except CLI_ERRORS as e:
        _fail(e)

    click.echo(
        f"Generated {result.files_created} files in "
        f"{len(result.categories)} categories"
    )
    click.echo(f"Vault created at: {result.output_dir}")


@main.command()
@_apply(source_options)
@_apply(provider_options)
@click.option("-o", "--output", type=click.Path(), default=None, help="Vault directory")
@click.option("-n", "--name", default=None, help="Vault name")
@click.option("--categories", default=None, help="Comma-separated categories to use")
@click.option("--language", default=None, help="Language for summaries")
@click.option("--batch-size", type=int, default=None, help="Bookmarks per AI request")
@click.option(
    "--classified-out", type=click.Path(), default="tweetvault-classified.json",
    help="Where to save the intermediate classification",
)
@click.pass_context
def sync(ctx, cookie, input_path, limit, delay, provider, api_key, model, base_url,
         output, name, categories, language, batch_size, classified_out):
    """Full pipeline: fetch -> classify -> generate the vault."""
    from .query_id import QueryIdResolver
    from .sync import sync_bookmarks

    config = load_config_or_default(ctx.obj["config_path"])
    sync_config = _sync_config(
        config, cookie=cookie, input_path=input_path, limit=limit, delay=delay,
        provider=provider, api_key=api_key, model=model, base_url=base_url,
        output=output, name=name, categories=_split_categories(categories),
        language=language, batch_size=batch_size,
    )

    try:
        result = sync_bookmarks(
            sync_config,
            on_progress=lambda p: click.echo(f"Step {p.step}/3: {p.detail}"),
            resolver=QueryIdResolver(),
        )
        _write_json(Path(classified_out), result.classification.to_dict())
    except CLI_ERRORS as e:
        _fail(e)

    click.echo(f"\nDone! Vault created at: {result.output_dir}")
    click.echo(f"Categories: {', '.join(result.categories)}")


@main.command()
def providers():
    """List supported AI providers and their defaults."""
    from .providers import PROVIDERS

    for name, spec in PROVIDERS.items():
        click.echo(f"{name:<12} {spec.format.value:<10} {spec.model:<40} {spec.base_url}")
