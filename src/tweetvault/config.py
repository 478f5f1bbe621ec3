"""Configuration loading and saving.

Config file location: ~/.config/tweetvault/config.toml

Schema:
    [ai]
    provider = "claude"
    api_key = "..."
    model = "..."       # optional, provider default otherwise
    base_url = "..."    # optional

    [output]
    dir = "./tweetvault-output"
    vault_name = "TweetVault"
    create_index = true
    include_media = true
    language = "en"

    [fetch]
    cookie = "..."      # full browser cookie string, must contain ct0
    input = "..."       # JSON file to import instead of fetching
    limit = 100
    delay = 0.0

    [api]
    query_id = "..."    # pin the GraphQL query ID (skips auto-discovery)
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

CONFIG_DIR = Path.home() / ".config" / "tweetvault"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class AIConfig:
    provider: str = "claude"
    api_key: str | None = None
    model: str | None = None
    base_url: str | None = None


@dataclass
class AppConfig:
    ai: AIConfig = field(default_factory=AIConfig)
    output_dir: Path = Path("./tweetvault-output")
    vault_name: str = "TweetVault"
    create_index: bool = True
    include_media: bool = True
    language: str | None = None
    cookie: str | None = None
    input_path: Path | None = None
    limit: int = 100
    fetch_delay: float = 0.0
    query_id: str | None = None


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load config from TOML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    ai_data = data.get("ai", {})
    output_data = data.get("output", {})
    fetch_data = data.get("fetch", {})
    api_data = data.get("api", {})

    input_path = fetch_data.get("input")

    return AppConfig(
        ai=AIConfig(
            provider=ai_data.get("provider", "claude"),
            api_key=ai_data.get("api_key") or None,
            model=ai_data.get("model") or None,
            base_url=ai_data.get("base_url") or None,
        ),
        output_dir=Path(output_data.get("dir", "./tweetvault-output")),
        vault_name=output_data.get("vault_name", "TweetVault"),
        create_index=bool(output_data.get("create_index", True)),
        include_media=bool(output_data.get("include_media", True)),
        language=output_data.get("language") or None,
        cookie=fetch_data.get("cookie") or None,
        input_path=Path(input_path) if input_path else None,
        limit=int(fetch_data.get("limit", 100)),
        fetch_delay=float(fetch_data.get("delay", 0.0)),
        query_id=api_data.get("query_id") or None,
    )


def load_config_or_default(config_path: Path = CONFIG_FILE) -> AppConfig:
    return load_config(config_path) if config_exists(config_path) else AppConfig()


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file with restricted permissions."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    ai = {"provider": config.ai.provider}
    for key in ("api_key", "model", "base_url"):
        value = getattr(config.ai, key)
        if value:
            ai[key] = value

    output = {
        "dir": str(config.output_dir),
        "vault_name": config.vault_name,
        "create_index": config.create_index,
        "include_media": config.include_media,
    }
    if config.language:
        output["language"] = config.language

    fetch = {"limit": config.limit, "delay": config.fetch_delay}
    if config.cookie:
        fetch["cookie"] = config.cookie
    if config.input_path:
        fetch["input"] = str(config.input_path)

    data = {"ai": ai, "output": output, "fetch": fetch}
    if config.query_id:
        data["api"] = {"query_id": config.query_id}

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    # Restrict permissions: file contains the cookie and API key
    os.chmod(config_path, 0o600)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
