from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from ricemill_app.enums import ActionKind, DeleteState

logger = logging.getLogger(__name__)

DEFAULT_DELETE_WARNING = (
    "Deleting this item will remove all its data. This action cannot be undone. "
    "Are you sure you want to continue?"
)

RowHandler = Callable[[Any, Any], None]
DeleteWarning = Union[str, Callable[[Any], str], None]


@dataclass(frozen=True)
class RowAction:
    label: str
    on_click: RowHandler
    kind: ActionKind = ActionKind.DEFAULT
    icon: Optional[str] = None

    @property
    def destructive(self) -> bool:
        return self.kind is ActionKind.DESTRUCTIVE


def destructive(label: str, on_click: RowHandler, icon: Optional[str] = None) -> RowAction:
    return RowAction(label=label, on_click=on_click, kind=ActionKind.DESTRUCTIVE, icon=icon)


def as_action_list(actions: Union[RowAction, Sequence[RowAction], None]) -> List[RowAction]:
    if actions is None:
        return []
    if isinstance(actions, RowAction):
        return [actions]
    return [action for action in actions if action is not None]


@dataclass(frozen=True)
class DeleteRequest:
    row: Any
    row_index: Any
    handler: RowHandler


class DeleteWorkflow:
    """Gates destructive actions behind an explicit confirmation.

    IDLE -> request() -> PENDING -> confirm() runs the handler -> IDLE
                                 -> cancel() discards it      -> IDLE
    """

    def __init__(self, warning: DeleteWarning = None) -> None:
        self.warning = warning
        self._pending: Optional[DeleteRequest] = None

    @property
    def state(self) -> DeleteState:
        return DeleteState.PENDING if self._pending is not None else DeleteState.IDLE

    @property
    def pending(self) -> Optional[DeleteRequest]:
        return self._pending

    def request(self, row: Any, row_index: Any, handler: RowHandler) -> DeleteRequest:
        if self._pending is not None:
            logger.debug("Replacing unresolved delete request for row %s", self._pending.row_index)
        self._pending = DeleteRequest(row=row, row_index=row_index, handler=handler)
        logger.debug("Delete requested for row %s", row_index)
        return self._pending

    def confirm(self) -> bool:
        request, self._pending = self._pending, None
        if request is None:
            return False
        logger.debug("Delete confirmed for row %s", request.row_index)
        request.handler(request.row, request.row_index)
        return True

    def cancel(self) -> bool:
        request, self._pending = self._pending, None
        if request is not None:
            logger.debug("Delete cancelled for row %s", request.row_index)
        return request is not None

    def dispatch(self, action: RowAction, row: Any, row_index: Any) -> None:
        if action.kind is ActionKind.DESTRUCTIVE:
            self.request(row, row_index, action.on_click)
        else:
            action.on_click(row, row_index)

    def message(self) -> str:
        warning = self.warning
        if callable(warning):
            row = self._pending.row if self._pending is not None else None
            return warning(row)
        return warning or DEFAULT_DELETE_WARNING
