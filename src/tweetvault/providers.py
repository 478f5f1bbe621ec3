"""AI provider table and per-wire-format request translation.

Every provider maps to a (wire format, default endpoint, default model)
triple. Requests are built and replies unpacked by one pair of functions per
wire format, selected from WIRE_FORMATS.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

import httpx

logger = logging.getLogger(__name__)


class WireFormat(str, Enum):
    OPENAI = "openai"  # OpenAI-compatible chat completions
    ANTHROPIC = "anthropic"  # Anthropic messages API
    LOCAL = "local"  # Ollama-style generate endpoint


@dataclass(frozen=True)
class ProviderSpec:
    format: WireFormat
    base_url: str
    model: str


LOCAL_PROVIDER = "ollama"

PROVIDERS: dict[str, ProviderSpec] = {
    "claude": ProviderSpec(WireFormat.ANTHROPIC, "https://api.anthropic.com", "claude-sonnet-4-5-20250514"),
    "openai": ProviderSpec(WireFormat.OPENAI, "https://api.openai.com/v1", "gpt-4o-mini"),
    "ollama": ProviderSpec(WireFormat.LOCAL, "http://localhost:11434", "llama3.2"),
    "deepseek": ProviderSpec(WireFormat.OPENAI, "https://api.deepseek.com/v1", "deepseek-chat"),
    "gemini": ProviderSpec(WireFormat.OPENAI, "https://generativelanguage.googleapis.com/v1beta/openai", "gemini-2.0-flash"),
    "moonshot": ProviderSpec(WireFormat.OPENAI, "https://api.moonshot.cn/v1", "moonshot-v1-8k"),
    "qwen": ProviderSpec(WireFormat.OPENAI, "https://dashscope.aliyuncs.com/compatible-mode/v1", "qwen-turbo"),
    "zhipu": ProviderSpec(WireFormat.OPENAI, "https://open.bigmodel.cn/api/paas/v4", "glm-4-flash"),
    "groq": ProviderSpec(WireFormat.OPENAI, "https://api.groq.com/openai/v1", "llama-3.1-8b-instant"),
    "mistral": ProviderSpec(WireFormat.OPENAI, "https://api.mistral.ai/v1", "mistral-small-latest"),
    "together": ProviderSpec(WireFormat.OPENAI, "https://api.together.xyz/v1", "meta-llama/Llama-3-8b-chat-hf"),
    "xai": ProviderSpec(WireFormat.OPENAI, "https://api.x.ai/v1", "grok-2-latest"),
    "openrouter": ProviderSpec(WireFormat.OPENAI, "https://openrouter.ai/api/v1", "meta-llama/llama-3-8b-instruct"),
    "siliconflow": ProviderSpec(WireFormat.OPENAI, "https://api.siliconflow.cn/v1", "Qwen/Qwen2.5-7B-Instruct"),
    "fireworks": ProviderSpec(WireFormat.OPENAI, "https://api.fireworks.ai/inference/v1", "accounts/fireworks/models/llama-v3p1-8b-instruct"),
    "cohere": ProviderSpec(WireFormat.OPENAI, "https://api.cohere.com/compatibility/v1", "command-r"),
    "deepinfra": ProviderSpec(WireFormat.OPENAI, "https://api.deepinfra.com/v1/openai", "meta-llama/Meta-Llama-3-8B-Instruct"),
    "perplexity": ProviderSpec(WireFormat.OPENAI, "https://api.perplexity.ai", "llama-3.1-sonar-small-128k-online"),
}

# Local models get smaller batches: less context, lower throughput
DEFAULT_BATCH_SIZES = {WireFormat.LOCAL: 10}
DEFAULT_BATCH_SIZE = 20

ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 4096


def resolve_provider(
    provider: str, base_url: str | None = None, model: str | None = None
) -> ProviderSpec:
    """Look up a provider's defaults and apply explicit overrides.

    Unknown providers are accepted only with a base URL and are spoken to as
    OpenAI-compatible endpoints.
    """
    spec = PROVIDERS.get(provider)
    if spec is None:
        if not base_url:
            raise ValueError(
                f"Unknown AI provider: {provider}. Choose one of "
                f"{', '.join(PROVIDERS)} or pass a base URL."
            )
        spec = ProviderSpec(WireFormat.OPENAI, base_url, model or "gpt-4o-mini")
    return replace(
        spec,
        base_url=(base_url or spec.base_url).rstrip("/"),
        model=model or spec.model,
    )


def requires_api_key(provider: str) -> bool:
    return provider != LOCAL_PROVIDER


def default_batch_size(spec: ProviderSpec) -> int:
    return DEFAULT_BATCH_SIZES.get(spec.format, DEFAULT_BATCH_SIZE)


# ── Wire formats ────────────────────────────────────────────────


def _openai_request(spec: ProviderSpec, prompt: str, api_key: str | None):
    headers = {"content-type": "application/json"}
    if api_key:
        headers["authorization"] = f"Bearer {api_key}"
    body = {
        "model": spec.model,
        "messages": [{"role": "user", "content": prompt}],
    }
    return f"{spec.base_url}/chat/completions", headers, body


def _openai_text(data: dict) -> str:
    choices = data.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or ""


def _anthropic_request(spec: ProviderSpec, prompt: str, api_key: str | None):
    headers = {
        "x-api-key": api_key or "",
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    body = {
        "model": spec.model,
        "max_tokens": MAX_TOKENS,
        "messages": [{"role": "user", "content": prompt}],
    }
    return f"{spec.base_url}/v1/messages", headers, body


def _anthropic_text(data: dict) -> str:
    return "".join(
        block.get("text", "")
        for block in data.get("content", [])
        if block.get("type") == "text"
    )


def _local_request(spec: ProviderSpec, prompt: str, api_key: str | None):
    body = {
        "model": spec.model,
        "prompt": prompt,
        "stream": False,
        "format": "json",
    }
    return f"{spec.base_url}/api/generate", {"content-type": "application/json"}, body


def _local_text(data: dict) -> str:
    return data.get("response") or ""


WIRE_FORMATS: dict[WireFormat, tuple[Callable, Callable[[dict], str]]] = {
    WireFormat.OPENAI: (_openai_request, _openai_text),
    WireFormat.ANTHROPIC: (_anthropic_request, _anthropic_text),
    WireFormat.LOCAL: (_local_request, _local_text),
}


def complete(
    client: httpx.Client, spec: ProviderSpec, prompt: str, api_key: str | None = None
) -> str:
    """Send a single user prompt and return the completion text."""
    build_request, extract_text = WIRE_FORMATS[spec.format]
    url, headers, body = build_request(spec, prompt, api_key)

    logger.debug("POST %s (model=%s, %d prompt chars)", url, spec.model, len(prompt))
    response = client.post(url, headers=headers, json=body)
    if not response.is_success:
        raise RuntimeError(
            f"{spec.format.value} API error {response.status_code}: "
            f"{response.text[:200]}"
        )
    return extract_text(response.json())
