from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

logger = logging.getLogger(__name__)


class SelectionManager:
    """Set of selected global row indices.

    Indices refer to the unpaginated collection, so a selection made on one
    page survives navigation to another. "Select all" only ever covers the
    indices handed to it, which is the current page.
    """

    def __init__(self) -> None:
        self._selected: Set[int] = set()

    @property
    def selected(self) -> List[int]:
        return sorted(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, index: object) -> bool:
        return index in self._selected

    def is_selected(self, index: int) -> bool:
        return index in self._selected

    def toggle_row(self, index: int) -> bool:
        if index in self._selected:
            self._selected.discard(index)
            return False
        self._selected.add(index)
        return True

    def select_all_on_page(self, checked: bool, page_indices: Iterable[int]) -> None:
        indices = list(page_indices)
        if checked:
            self._selected.update(indices)
        else:
            self._selected.difference_update(indices)

    def all_selected(self, page_indices: Iterable[int]) -> bool:
        indices = list(page_indices)
        return bool(indices) and all(i in self._selected for i in indices)

    def discard(self, indices: Iterable[int]) -> None:
        self._selected.difference_update(list(indices))

    def clear(self) -> None:
        self._selected.clear()

    def revalidate(
        self,
        old_keys: Mapping[int, Any],
        new_keys: Mapping[int, Any],
        *,
        window: Optional[range] = None,
    ) -> None:
        """Re-point the selection at the same rows after the row set changed.

        ``old_keys``/``new_keys`` map global index to row identity. Selected
        rows that moved follow their identity; rows that vanished are dropped.
        Indices outside ``window`` (rows the grid cannot see) are kept as-is.
        """
        if not self._selected:
            return
        position_of: Dict[Any, int] = {}
        for index, key in new_keys.items():
            position_of.setdefault(key, index)

        kept: Set[int] = set()
        dropped = 0
        for index in self._selected:
            key = old_keys.get(index)
            if key is not None and key in position_of:
                kept.add(position_of[key])
            elif window is not None and index not in window:
                kept.add(index)
            elif key is None and index in new_keys:
                kept.add(index)
            else:
                dropped += 1
        if dropped:
            logger.debug("Dropped %s stale selected row(s) after refresh", dropped)
        self._selected = kept
