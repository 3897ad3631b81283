"""Unit tests for SelectionTracker re-anchoring."""

from idxwatch.services.selection import SelectionTracker


class TestSelectionTracker:
    def setup_method(self):
        self.tracker = SelectionTracker()

    def test_first_reconcile_selects_top(self):
        assert self.tracker.reconcile(["BBCA", "BBRI"]) == 0
        assert self.tracker.selected_key() == "BBCA"

    def test_empty_view_clears_cursor(self):
        self.tracker.reconcile(["BBCA"])
        assert self.tracker.reconcile([]) is None
        assert self.tracker.selected_key() is None

    def test_follows_item_after_reorder(self):
        self.tracker.reconcile(["AAA", "BBCA", "BBRI"])
        self.tracker.move_down(["AAA", "BBCA", "BBRI"])
        assert self.tracker.selected_key() == "BBCA"

        assert self.tracker.reconcile(["BBRI", "BBCA", "AAA"]) == 1
        assert self.tracker.reconcile(["BBCA", "BBRI"]) == 0
        assert self.tracker.selected_key() == "BBCA"

    def test_filtered_out_item_clamps(self):
        keys = ["AAA", "BBCA", "BBRI", "CCC"]
        self.tracker.reconcile(keys)
        self.tracker.select(3, keys)
        assert self.tracker.reconcile(["BBCA", "BBRI"]) == 1
        assert self.tracker.selected_key() == "BBRI"

    def test_removed_item_keeps_row(self):
        keys = ["AAA", "BBCA", "BBRI"]
        self.tracker.reconcile(keys)
        self.tracker.select(1, keys)
        assert self.tracker.reconcile(["AAA", "BBRI"]) == 1
        assert self.tracker.selected_key() == "BBRI"

    def test_move_bounds(self):
        keys = ["AAA", "BBCA"]
        self.tracker.reconcile(keys)
        self.tracker.move_up(keys)
        assert self.tracker.cursor == 0
        self.tracker.move_down(keys)
        self.tracker.move_down(keys)
        assert self.tracker.cursor == 1

    def test_reset_jumps_to_top(self):
        keys = ["AAA", "BBCA"]
        self.tracker.reconcile(keys)
        self.tracker.select(1, keys)
        assert self.tracker.reset(keys) == 0
        assert self.tracker.selected_key() == "AAA"
        assert self.tracker.reset([]) is None

    def test_select_clamps_row(self):
        keys = ["AAA", "BBCA"]
        assert self.tracker.select(10, keys) == 1
