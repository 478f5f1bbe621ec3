"""Tests for vault generation."""

from dataclasses import replace

from tweetvault.models import VaultOptions
from tweetvault.vault import generate_vault, group_by_category, sanitize_path


class TestSanitizePath:
    def test_replaces_unsafe_characters(self):
        assert sanitize_path("A/B: C*D") == "A_B_ C_D"

    def test_all_reserved_characters(self):
        assert sanitize_path('<>:"/\\|?*') == "_________"

    def test_strips_whitespace(self):
        assert sanitize_path("  Tech  ") == "Tech"

    def test_never_empty_or_relative(self):
        assert sanitize_path("") == "_"
        assert sanitize_path("   ") == "_"
        assert sanitize_path(".") == "_"
        assert sanitize_path("..") == "_"

    def test_safe_names_unchanged(self):
        assert sanitize_path("AI & ML") == "AI & ML"


class TestGroupByCategory:
    def test_exact_strings_and_order(self, classified_items):
        groups = group_by_category(classified_items)
        assert list(groups) == ["Tech", "Design"]
        assert [i.bookmark.id for i in groups["Tech"]] == ["1234567890", "5555555555"]


class TestGenerateVault:
    def test_layout(self, tmp_path, classified_items):
        result = generate_vault(classified_items, VaultOptions(output_dir=tmp_path))

        assert (tmp_path / "_index.md").exists()
        assert (tmp_path / "Tech" / "_index.md").exists()
        assert (tmp_path / "Tech" / "testuser-1234567890.md").exists()
        assert (tmp_path / "Tech" / "quoter-5555555555.md").exists()
        assert (tmp_path / "Design" / "photouser-9876543210.md").exists()
        assert (tmp_path / "Design" / "_index.md").exists()
        assert result.files_created == 6  # 3 notes + 2 category indexes + vault index
        assert result.categories == ["Tech", "Design"]
        assert result.output_dir == tmp_path

    def test_creates_missing_output_dir(self, tmp_path, classified_items):
        out = tmp_path / "nested" / "vault"
        generate_vault(classified_items, VaultOptions(output_dir=out))
        assert (out / "_index.md").exists()

    def test_note_contents(self, tmp_path, classified_items):
        generate_vault(classified_items, VaultOptions(output_dir=tmp_path))
        note = (tmp_path / "Tech" / "testuser-1234567890.md").read_text(encoding="utf-8")
        assert 'category: "Tech"' in note
        assert "This is a test tweet" in note

    def test_vault_name(self, tmp_path, classified_items):
        generate_vault(classified_items, VaultOptions(output_dir=tmp_path, vault_name="Reading"))
        assert "# Reading" in (tmp_path / "_index.md").read_text(encoding="utf-8")

    def test_without_indexes(self, tmp_path, classified_items):
        result = generate_vault(
            classified_items, VaultOptions(output_dir=tmp_path, create_index=False)
        )
        assert not (tmp_path / "_index.md").exists()
        assert not (tmp_path / "Tech" / "_index.md").exists()
        assert result.files_created == 3

    def test_without_media(self, tmp_path, classified_items):
        generate_vault(classified_items, VaultOptions(output_dir=tmp_path, include_media=False))
        note = (tmp_path / "Design" / "photouser-9876543210.md").read_text(encoding="utf-8")
        assert "## Media" not in note

    def test_unsafe_category_name(self, tmp_path, classified_items):
        item = replace(classified_items[0], category="AI/ML")
        generate_vault([item], VaultOptions(output_dir=tmp_path))
        assert (tmp_path / "AI_ML" / "testuser-1234567890.md").exists()
        note = (tmp_path / "AI_ML" / "testuser-1234567890.md").read_text(encoding="utf-8")
        assert 'category: "AI/ML"' in note

    def test_colliding_categories_share_directory_and_index(self, tmp_path, classified_items):
        a = replace(classified_items[0], category="Tech")
        b = replace(classified_items[2], category="Tech ")
        result = generate_vault([a, b], VaultOptions(output_dir=tmp_path))

        assert result.categories == ["Tech", "Tech "]
        index = (tmp_path / "Tech" / "_index.md").read_text(encoding="utf-8")
        assert "count: 2" in index
        assert "testuser-1234567890" in index
        assert "quoter-5555555555" in index
        vault_index = (tmp_path / "_index.md").read_text(encoding="utf-8")
        assert "2 bookmarks across 1 categories." in vault_index

    def test_rerun_is_idempotent(self, tmp_path, classified_items):
        options = VaultOptions(output_dir=tmp_path)
        generate_vault(classified_items, options)
        first = {p: p.read_text(encoding="utf-8") for p in tmp_path.rglob("*.md")}

        generate_vault(classified_items, options)
        second = {p: p.read_text(encoding="utf-8") for p in tmp_path.rglob("*.md")}

        assert first == second

    def test_rerun_keeps_notes_from_earlier_runs(self, tmp_path, classified_items):
        options = VaultOptions(output_dir=tmp_path)
        generate_vault(classified_items, options)
        generate_vault(classified_items[:1], options)

        assert (tmp_path / "Design" / "photouser-9876543210.md").exists()
        index = (tmp_path / "Tech" / "_index.md").read_text(encoding="utf-8")
        assert "count: 1" in index
