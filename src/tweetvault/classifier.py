"""Classify bookmarks into categories and tags with an AI provider.

Bookmarks are sent in fixed-size batches, one prompt per batch. A batch
either parses completely or raises; there is no partial salvage.
"""

import json
import logging
import re
from collections.abc import Callable

import httpx

from .models import Bookmark, ClassificationResult, ClassifiedBookmark
from .providers import complete, default_batch_size, resolve_provider

logger = logging.getLogger(__name__)

CLASSIFICATION_PROMPT = """\
You are a bookmark classifier. Given a list of tweets/posts, classify each one \
into a category and subcategory, assign relevant tags, and write a brief summary.

Respond in JSON format:
{
  "items": [
    {
      "id": "tweet_id",
      "category": "Main Category",
      "subcategory": "Sub Category (optional)",
      "tags": ["tag1", "tag2"],
      "summary": "One sentence summary"
    }
  ],
  "categories": ["Category1", "Category2"]
}

Categories should be broad topics like: Tech, AI/ML, Design, Business, Life, \
Science, Programming, etc.
Keep categories concise and reusable. Aim for 5-15 total categories.

Tweets to classify:
"""

MAX_TEXT_CHARS = 500
MAX_HANDLE_CHARS = 50
FALLBACK_CATEGORY = "Uncategorized"

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def build_prompt(
    batch: list[Bookmark],
    categories: list[str] | None = None,
    language: str | None = None,
) -> str:
    manifest = "\n\n".join(
        f"[ID: {b.id}] @{b.author_handle[:MAX_HANDLE_CHARS]}: {b.text[:MAX_TEXT_CHARS]}"
        for b in batch
    )
    prompt = CLASSIFICATION_PROMPT + manifest
    if categories:
        prompt += f"\n\nUse these categories: {', '.join(categories)}"
    if language:
        prompt += f"\n\nRespond with summaries in {language}."
    return prompt


def extract_json_object(text: str) -> dict:
    """Decode the outermost {...} span of a model reply.

    Models may wrap the object in prose or code fences. Raises RuntimeError
    when no object can be found or decoded.
    """
    match = JSON_OBJECT_RE.search(text or "")
    if not match:
        raise RuntimeError("Failed to parse AI response as JSON: no object found")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Failed to parse AI response as JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise RuntimeError("Failed to parse AI response as JSON: not an object")
    return parsed


def parse_reply(text: str, batch: list[Bookmark]) -> ClassificationResult:
    """Match a model reply against its batch.

    Items whose id is not in the batch are dropped. Categories come from the
    declared list plus every category attached to a kept item.
    """
    parsed = extract_json_object(text)
    by_id = {b.id: b for b in batch}

    items: list[ClassifiedBookmark] = []
    categories: list[str] = []

    for raw in parsed.get("items") or []:
        if not isinstance(raw, dict):
            continue
        bookmark = by_id.get(str(raw.get("id", "")))
        if bookmark is None:
            logger.warning("Dropping classification for unknown id %r", raw.get("id"))
            continue
        category = str(raw.get("category") or "")
        if not category.strip():
            category = FALLBACK_CATEGORY
        tags = raw.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        items.append(
            ClassifiedBookmark(
                bookmark=bookmark,
                category=category,
                subcategory=raw.get("subcategory") or None,
                tags=tuple(dict.fromkeys(str(t) for t in tags)),
                summary=str(raw.get("summary") or ""),
            )
        )
        categories.append(category)

    for category in parsed.get("categories") or []:
        if category:
            categories.append(str(category))

    return ClassificationResult(items=items, categories=list(dict.fromkeys(categories)))


class Classifier:
    """Classifier bound to one provider configuration."""

    def __init__(
        self,
        provider: str,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.provider = provider
        self.spec = resolve_provider(provider, base_url=base_url, model=model)
        self._api_key = api_key
        self._client = http_client or httpx.Client(timeout=120.0)
        self._owns_client = http_client is None

    def classify(
        self,
        bookmarks: list[Bookmark],
        categories: list[str] | None = None,
        language: str | None = None,
        batch_size: int | None = None,
        on_batch: Callable[[int, int], None] | None = None,
    ) -> ClassificationResult:
        """Classify all bookmarks, batch by batch, in input order.

        Args:
            bookmarks: Records to classify.
            categories: Restrict the model to these category names.
            language: Language for the generated summaries.
            batch_size: Items per request (defaults depend on the wire format).
            on_batch: Called with (batch number, total batches) before each request.
        """
        size = default_batch_size(self.spec) if batch_size is None else batch_size
        if size < 1:
            raise ValueError("batch_size must be at least 1")

        total_batches = (len(bookmarks) + size - 1) // size
        result = ClassificationResult()
        seen_categories: dict[str, None] = {}

        for index, start in enumerate(range(0, len(bookmarks), size), start=1):
            batch = bookmarks[start:start + size]
            if on_batch:
                on_batch(index, total_batches)
            logger.info(
                "Classifying batch %d/%d (%d bookmarks) with %s",
                index, total_batches, len(batch), self.provider,
            )
            prompt = build_prompt(batch, categories=categories, language=language)
            reply = complete(self._client, self.spec, prompt, self._api_key)
            batch_result = parse_reply(reply, batch)

            result.items.extend(batch_result.items)
            seen_categories.update(dict.fromkeys(batch_result.categories))

        result.categories = list(seen_categories)
        return result

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
