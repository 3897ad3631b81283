"""Cursor into a filtered/sorted view that follows the selected item."""

import logging
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class SelectionTracker:
    """
    Cursor (row in the current view) anchored to the identity of the item under it.

    After every view recomputation call `reconcile` with the new row keys:
    the cursor follows the anchored item when it is still visible, otherwise
    it is clamped into the view, or cleared when the view is empty.
    """

    def __init__(self):
        self.cursor: Optional[int] = None
        self.anchor: Optional[str] = None

    def reconcile(self, keys: Sequence[str]) -> Optional[int]:
        if not keys:
            self.cursor = None
            self.anchor = None
            return None

        if self.anchor is not None and self.anchor in keys:
            self.cursor = keys.index(self.anchor)
        else:
            previous = self.cursor if self.cursor is not None else 0
            self.cursor = min(previous, len(keys) - 1)
        self.anchor = keys[self.cursor]
        return self.cursor

    def reset(self, keys: Sequence[str]) -> Optional[int]:
        """Jump to the first row (used after sort or collection changes)."""
        self.cursor = 0 if keys else None
        self.anchor = keys[0] if keys else None
        return self.cursor

    def move_up(self, keys: Sequence[str]) -> Optional[int]:
        if self.cursor is not None and self.cursor > 0:
            self.select(self.cursor - 1, keys)
        return self.cursor

    def move_down(self, keys: Sequence[str]) -> Optional[int]:
        if self.cursor is not None and self.cursor < len(keys) - 1:
            self.select(self.cursor + 1, keys)
        return self.cursor

    def select(self, row: int, keys: Sequence[str]) -> Optional[int]:
        if not keys:
            return self.reconcile(keys)
        self.cursor = max(0, min(row, len(keys) - 1))
        self.anchor = keys[self.cursor]
        return self.cursor

    def selected_key(self) -> Optional[str]:
        return self.anchor if self.cursor is not None else None
