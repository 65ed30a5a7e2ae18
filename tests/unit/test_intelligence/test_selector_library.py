"""Unit tests for SelectorLibrary."""

import json

import pytest

from loop_inventory.intelligence.locators import PAGE_ITEM, WORKSPACE_LIST
from loop_inventory.intelligence.selector_library import SelectorLibrary, SelectorStats


class TestSelectorStats:
    """Tests for SelectorStats."""

    def test_record_hit(self):
        """Test recording a productive selector."""
        stats = SelectorStats()

        stats.record_hit("a")
        stats.record_hit("a")
        stats.record_hit("b")

        assert stats.hits == {"a": 2, "b": 1}
        assert stats.total_hits == 3
        assert stats.last_selector == "b"
        assert stats.last_hit is not None

    def test_record_miss(self):
        stats = SelectorStats()

        stats.record_miss()

        assert stats.misses == 1
        assert stats.total_hits == 0

    def test_serialization(self):
        """Test to_dict/from_dict keep every field."""
        stats = SelectorStats()
        stats.record_hit("[role=tree]")
        stats.record_miss()

        restored = SelectorStats.from_dict(stats.to_dict())

        assert restored.hits == stats.hits
        assert restored.misses == 1
        assert restored.last_hit == stats.last_hit
        assert restored.last_selector == "[role=tree]"


class TestSelectorLibrary:
    """Tests for SelectorLibrary."""

    @pytest.fixture
    def library(self, tmp_path):
        return SelectorLibrary(storage_path=tmp_path / "selectors.json")

    def test_builtin_strategy_without_overrides(self, library):
        assert library.strategy("page_item") is PAGE_ITEM

    def test_unknown_purpose_raises(self, library):
        with pytest.raises(KeyError):
            library.strategy("does_not_exist")

    def test_override_tried_first(self, library):
        library.add_override("workspace_list", "#new-sidebar")

        strategy = library.strategy("workspace_list")

        assert strategy.selectors[0] == "#new-sidebar"
        assert strategy.selectors[1:] == WORKSPACE_LIST.selectors

    def test_override_for_custom_purpose(self, library):
        library.add_override("custom", ".thing")

        assert library.strategy("custom").selectors == (".thing",)

    def test_duplicate_override_ignored(self, library):
        library.add_override("page_item", ".row")
        library.add_override("page_item", ".row")

        assert library.stats()["override_count"] == 1

    def test_save_and_load(self, tmp_path):
        """Test that overrides and stats survive a round trip through disk."""
        path = tmp_path / "nested" / "selectors.json"
        library = SelectorLibrary(storage_path=path)
        library.add_override("page_item", ".row")
        library.record_hit("page_item", ".row")
        library.record_miss("workspace_list")
        library.save()

        reloaded = SelectorLibrary(storage_path=path)

        assert reloaded.strategy("page_item").selectors[0] == ".row"
        assert reloaded.get_stats("page_item").hits == {".row": 1}
        assert reloaded.get_stats("workspace_list").misses == 1

    def test_load_ignores_non_string_selectors(self, tmp_path):
        path = tmp_path / "selectors.json"
        path.write_text(json.dumps({"overrides": {"page_item": [".ok", 3, None]}}))

        library = SelectorLibrary(storage_path=path)

        assert library.strategy("page_item").selectors[0] == ".ok"
        assert library.stats()["override_count"] == 1

    def test_save_without_path_is_noop(self):
        library = SelectorLibrary()
        library.add_override("page_item", ".row")

        library.save()

        assert library.storage_path is None

    def test_stats_summary(self, library):
        library.record_hit("page_item", '[role="treeitem"]')
        library.record_hit("page_item", '[role="treeitem"]')
        library.record_miss("page_tree")
        library.record_hit("workspace_item", WORKSPACE_LIST.selectors[-1])
        library.record_hit("workspace_list", WORKSPACE_LIST.selectors[-1])

        stats = library.stats()

        assert stats["purpose_count"] == 4
        assert stats["total_hits"] == 4
        assert stats["total_misses"] == 1
        assert stats["missing_purposes"] == ["page_tree"]
        assert stats["degraded_purposes"] == ["workspace_list"]

    def test_get_stats_unknown(self, library):
        assert library.get_stats("page_item") is None
