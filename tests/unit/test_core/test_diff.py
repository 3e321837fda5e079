"""Unit tests for archhub.core.changes.diff."""

from archhub.core.changes.diff import ADDED, DELETED, NEW, OLD, diff_documents, diff_stats


class TestDiffDocuments:
    """Tests for the structural diff format."""

    def test_equal_documents(self):
        assert diff_documents({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}) == {}

    def test_scalar_change(self):
        assert diff_documents({"a": 1}, {"a": 2}) == {"a": {OLD: 1, NEW: 2}}

    def test_added_and_deleted_keys(self):
        diff = diff_documents({"a": 1, "b": 2}, {"a": 1, "c": 3})
        assert diff == {"b": {DELETED: 2}, "c": {ADDED: 3}}

    def test_nested_change(self):
        diff = diff_documents({"x": {"y": {"z": "old"}}}, {"x": {"y": {"z": "new"}}})
        assert diff == {"x": {"y": {"z": {OLD: "old", NEW: "new"}}}}

    def test_list_entries_are_position_aligned(self):
        diff = diff_documents({"l": [1, 2, 3]}, {"l": [1, 5]})
        assert diff == {"l": [[" ", 1], ["~", {OLD: 2, NEW: 5}], ["-", 3]]}

    def test_list_append(self):
        diff = diff_documents([{"id": "a"}], [{"id": "a"}, {"id": "b"}])
        assert diff == [[" ", {"id": "a"}], ["+", {"id": "b"}]]

    def test_type_change_is_a_replacement(self):
        assert diff_documents({"a": 1}, {"a": "1"}) == {"a": {OLD: 1, NEW: "1"}}
        assert diff_documents(1, True) == {OLD: 1, NEW: True}
        assert diff_documents({"a": {"b": 1}}, {"a": [1]}) == {"a": {OLD: {"b": 1}, NEW: [1]}}

    def test_max_depth_collapses_deeper_changes(self):
        old = {"a": {"b": {"c": 1}}}
        new = {"a": {"b": {"c": 2}}}
        assert diff_documents(old, new, max_depth=1) == {"a": {OLD: {"b": {"c": 1}}, NEW: {"b": {"c": 2}}}}
        assert diff_documents(old, new, max_depth=0) == {OLD: old, NEW: new}
        assert diff_documents(old, new, max_depth=1) != diff_documents(old, new)

    def test_max_depth_keeps_equal_documents_empty(self):
        assert diff_documents({"a": 1}, {"a": 1}, max_depth=0) == {}


class TestDiffStats:
    """Tests for leaf change counting."""

    def test_counts(self):
        diff = diff_documents({"a": 1, "b": 2, "l": [1]}, {"a": 3, "c": 4, "l": [1, 2]})
        assert diff_stats(diff) == {
            "added_count": 2,
            "removed_count": 1,
            "modified_count": 1,
            "total_changes": 4,
        }

    def test_empty_diff(self):
        assert diff_stats({}) == {
            "added_count": 0,
            "removed_count": 0,
            "modified_count": 0,
            "total_changes": 0,
        }

    def test_nested_list_changes(self):
        diff = diff_documents({"l": [{"x": 1}, 2]}, {"l": [{"x": 2}]})
        stats = diff_stats(diff)
        assert stats["modified_count"] == 1
        assert stats["removed_count"] == 1
