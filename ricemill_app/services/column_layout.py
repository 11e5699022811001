from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Set

from ricemill_app.services.columns import Column, ColumnGroup

logger = logging.getLogger(__name__)

MIN_COLUMN_WIDTH = 60
DEFAULT_COLUMN_WIDTH = 140

MoveListener = Callable[[float], None]
UpListener = Callable[[], None]


@dataclass(frozen=True)
class HeaderBand:
    """One cell of the grouped header row; ungrouped runs carry an empty label."""

    label: str
    columns: List[Column]


class PointerHost(Protocol):
    """Window-level pointer source. ``subscribe`` returns the matching unsubscribe."""

    def subscribe(self, on_move: MoveListener, on_up: UpListener) -> Callable[[], None]: ...


class ResizeGesture:
    """One drag on a column resize handle.

    Owns the drag state from ``begin_resize`` until ``end``. ``end`` is
    idempotent and always detaches the host listeners, wherever the pointer
    is released. Usable as a context manager.
    """

    def __init__(
        self,
        layout: "ColumnLayout",
        column_index: int,
        start_x: float,
        start_width: float,
        host: Optional[PointerHost] = None,
    ) -> None:
        self.layout = layout
        self.column_index = column_index
        self.start_x = start_x
        self.start_width = start_width
        self._x = start_x
        self._active = True
        self._unsubscribe: Optional[Callable[[], None]] = None
        if host is not None:
            self._unsubscribe = host.subscribe(self.move, self.end)

    @property
    def active(self) -> bool:
        return self._active

    def move(self, x: float) -> Optional[int]:
        if not self._active:
            return None
        self._x = x
        width = max(self.layout.min_width, int(round(self.start_width + (x - self.start_x))))
        self.layout._widths[self.column_index] = width
        return width

    def move_by(self, delta: float) -> Optional[int]:
        """Apply a relative pointer movement since the previous event."""
        if not self._active:
            return None
        return self.move(self._x + delta)

    def end(self) -> None:
        if not self._active:
            return
        self._active = False
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        try:
            if unsubscribe is not None:
                unsubscribe()
        finally:
            self.layout._release(self)
        logger.debug("Column %s resized to %s", self.column_index, self.layout.width(self.column_index))

    def __enter__(self) -> "ResizeGesture":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.end()
        return False


class ColumnLayout:
    """Hidden columns and column widths, keyed by the stable column ``idx``."""

    def __init__(self, min_width: int = MIN_COLUMN_WIDTH, default_width: int = DEFAULT_COLUMN_WIDTH) -> None:
        if min_width < 1:
            raise ValueError(f"min_width must be >= 1, got {min_width}")
        self.min_width = min_width
        self.default_width = max(default_width, min_width)
        self._hidden: Set[int] = set()
        self._widths: Dict[int, int] = {}
        self._active: Optional[ResizeGesture] = None

    @property
    def hidden(self) -> List[int]:
        return sorted(self._hidden)

    @property
    def active_gesture(self) -> Optional[ResizeGesture]:
        return self._active

    def toggle_column(self, idx: int) -> bool:
        """Flip visibility of column ``idx``; returns True when it is now visible."""
        if idx in self._hidden:
            self._hidden.discard(idx)
            return True
        self._hidden.add(idx)
        return False

    def is_hidden(self, idx: int) -> bool:
        return idx in self._hidden

    def visible(self, columns: Sequence[Column]) -> List[Column]:
        return [col for col in columns if col.idx not in self._hidden]

    def width(self, idx: int) -> Optional[int]:
        return self._widths.get(idx)

    def begin_resize(
        self,
        idx: int,
        start_x: float,
        start_width: Optional[float] = None,
        host: Optional[PointerHost] = None,
    ) -> ResizeGesture:
        if self._active is not None:
            self._active.end()
        if start_width is None:
            start_width = self._widths.get(idx, self.default_width)
        gesture = ResizeGesture(self, idx, start_x, start_width, host)
        self._active = gesture
        return gesture

    def _release(self, gesture: ResizeGesture) -> None:
        if self._active is gesture:
            self._active = None

    def header_bands(self, columns: Sequence[Column], groups: Sequence[ColumnGroup]) -> List[HeaderBand]:
        """Spans of the grouped header row over the visible columns.

        Consecutive visible columns of the same group share one band; a group
        whose columns are all hidden yields no band.
        """
        group_of: Dict[int, int] = {}
        for position, group in enumerate(groups):
            for idx in group.members:
                group_of[idx] = position

        bands: List[HeaderBand] = []
        current: Optional[int] = -1
        for col in self.visible(columns):
            position = group_of.get(col.idx)
            if bands and position == current:
                bands[-1].columns.append(col)
                continue
            label = groups[position].label if position is not None else ""
            bands.append(HeaderBand(label=label, columns=[col]))
            current = position
        return bands

    def band_width(self, band: HeaderBand, spacing: int = 0) -> int:
        return sum((self.width(col.idx) or col.width or self.default_width) + spacing for col in band.columns)
