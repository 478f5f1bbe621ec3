"""Tests for batch classification."""

import json

import httpx
import pytest
import respx

from tweetvault.classifier import (
    Classifier,
    build_prompt,
    extract_json_object,
    parse_reply,
)
from tweetvault.models import Bookmark

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OLLAMA_URL = "http://localhost:11434/api/generate"


def _openai_reply(payload) -> httpx.Response:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def _bookmarks(n: int) -> list[Bookmark]:
    return [Bookmark(id=str(i), text=f"post {i}", author_handle="h") for i in range(n)]


def _echo_reply(request: httpx.Request) -> httpx.Response:
    """Classify every id found in the prompt as category Cat<id % 2>."""
    prompt = json.loads(request.content)["messages"][0]["content"]
    ids = [line.split("]")[0][len("[ID: "):] for line in prompt.split("\n") if line.startswith("[ID: ")]
    return _openai_reply(
        {
            "items": [
                {"id": i, "category": f"Cat{int(i) % 2}", "tags": ["t"], "summary": f"s{i}"}
                for i in ids
            ],
            "categories": [],
        }
    )


class TestBuildPrompt:
    def test_manifest_lines(self):
        prompt = build_prompt([Bookmark(id="42", text="hello", author_handle="alice")])
        assert "[ID: 42] @alice: hello" in prompt
        assert '"categories"' in prompt

    def test_truncates_text(self):
        prompt = build_prompt([Bookmark(id="1", text="a" * 600 + "TAIL")])
        assert "a" * 500 in prompt
        assert "TAIL" not in prompt

    def test_categories_and_language(self):
        prompt = build_prompt(_bookmarks(1), categories=["Tech", "Art"], language="German")
        assert "Use these categories: Tech, Art" in prompt
        assert "Respond with summaries in German." in prompt


class TestExtractJsonObject:
    def test_code_fenced_reply(self):
        text = 'Sure! Here you go:\n```json\n{"items": [], "categories": ["A"]}\n```'
        assert extract_json_object(text) == {"items": [], "categories": ["A"]}

    def test_no_object_raises(self):
        with pytest.raises(RuntimeError, match="no object"):
            extract_json_object("I cannot help with that.")

    def test_invalid_json_raises(self):
        with pytest.raises(RuntimeError, match="Failed to parse"):
            extract_json_object("{items: [oops}")


class TestParseReply:
    def test_drops_unknown_ids(self):
        batch = _bookmarks(2)
        reply = json.dumps(
            {
                "items": [
                    {"id": "0", "category": "Tech", "tags": ["a"], "summary": "s"},
                    {"id": "999", "category": "Ghost", "tags": [], "summary": "s"},
                ],
                "categories": ["Tech"],
            }
        )
        result = parse_reply(reply, batch)
        assert [item.bookmark.id for item in result.items] == ["0"]
        assert "Ghost" not in result.categories

    def test_unions_declared_and_attached_categories(self):
        reply = json.dumps(
            {
                "items": [{"id": "0", "category": "Undeclared", "tags": [], "summary": "s"}],
                "categories": ["Declared", "Unused"],
            }
        )
        result = parse_reply(reply, _bookmarks(1))
        assert set(result.categories) == {"Undeclared", "Declared", "Unused"}

    def test_item_fields(self):
        reply = json.dumps(
            {
                "items": [
                    {
                        "id": "0",
                        "category": "Tech",
                        "subcategory": "AI",
                        "tags": ["ml", "ml", "llm"],
                        "summary": "About models",
                    }
                ]
            }
        )
        (item,) = parse_reply(reply, _bookmarks(1)).items
        assert item.category == "Tech"
        assert item.subcategory == "AI"
        assert set(item.tags) == {"ml", "llm"}
        assert item.summary == "About models"

    def test_blank_category_falls_back(self):
        reply = json.dumps({"items": [{"id": "0", "category": " ", "summary": "s"}]})
        (item,) = parse_reply(reply, _bookmarks(1)).items
        assert item.category == "Uncategorized"


class TestClassifier:
    @respx.mock
    def test_batches_in_order_and_accumulates_categories(self):
        route = respx.post(OPENAI_URL).mock(side_effect=_echo_reply)

        with Classifier("openai", api_key="sk") as classifier:
            result = classifier.classify(_bookmarks(5), batch_size=2)

        assert route.call_count == 3
        assert [item.bookmark.id for item in result.items] == ["0", "1", "2", "3", "4"]
        assert set(result.categories) == {"Cat0", "Cat1"}
        assert len(result.categories) == 2

    @respx.mock
    def test_default_batch_size_for_local_models(self):
        route = respx.post(OLLAMA_URL).mock(
            return_value=httpx.Response(200, json={"response": '{"items": [], "categories": []}'})
        )

        with Classifier("ollama") as classifier:
            classifier.classify(_bookmarks(25))

        assert route.call_count == 3  # batches of 10

    @respx.mock
    def test_default_batch_size_for_hosted_models(self):
        route = respx.post(OPENAI_URL).mock(side_effect=_echo_reply)

        with Classifier("openai", api_key="sk") as classifier:
            classifier.classify(_bookmarks(25))

        assert route.call_count == 2  # batches of 20

    @respx.mock
    def test_unparseable_batch_fails_whole_call(self):
        route = respx.post(OPENAI_URL)
        route.side_effect = [
            _openai_reply({"items": [{"id": "0", "category": "A", "tags": [], "summary": ""}]}),
            _openai_reply("Sorry, I can't do that."),
        ]

        with Classifier("openai", api_key="sk") as classifier:
            with pytest.raises(RuntimeError, match="Failed to parse AI response"):
                classifier.classify(_bookmarks(2), batch_size=1)

    @respx.mock
    def test_on_batch_callback(self):
        respx.post(OPENAI_URL).mock(side_effect=_echo_reply)
        seen = []

        with Classifier("openai", api_key="sk") as classifier:
            classifier.classify(_bookmarks(3), batch_size=2, on_batch=lambda i, n: seen.append((i, n)))

        assert seen == [(1, 2), (2, 2)]

    def test_rejects_zero_batch_size(self):
        with Classifier("openai", api_key="sk") as classifier:
            with pytest.raises(ValueError):
                classifier.classify(_bookmarks(1), batch_size=0)

    @respx.mock
    def test_model_override(self):
        route = respx.post("http://gateway.local/v1/chat/completions").mock(side_effect=_echo_reply)

        with Classifier(
            "openai", api_key="sk", model="custom", base_url="http://gateway.local/v1"
        ) as classifier:
            classifier.classify(_bookmarks(1))

        assert json.loads(route.calls.last.request.content)["model"] == "custom"
