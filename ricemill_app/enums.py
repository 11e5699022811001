"""
Centralized enums for the data grid.
Avoids typos and gives a single source of truth for grid states and tags.
"""

from enum import Enum


class SortDirection(str, Enum):
    """Sort direction of a column."""
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class PaginationMode(str, Enum):
    """Who owns slicing and ordering of the rows."""
    LOCAL = "local"
    REMOTE = "remote"


class ActionKind(str, Enum):
    """Row action tag. Destructive actions require confirmation."""
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class DeleteState(str, Enum):
    """States of the delete confirmation workflow."""
    IDLE = "IDLE"
    PENDING = "PENDING"
