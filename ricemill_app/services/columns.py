from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

Accessor = Union[str, Callable[[Any], Any]]
CellRenderer = Callable[[Any, Any], Any]
SortFn = Callable[[Any, Any, str], int]
Formatter = Callable[[Any, Any], str]


@dataclass
class ColumnConfig:
    key: str
    label: str
    accessor: Optional[Accessor] = None
    render: Optional[CellRenderer] = None
    sort_fn: Optional[SortFn] = None
    formatter: Optional[Formatter] = None
    sortable: bool = True
    width: Optional[int] = None


ColumnDescriptor = Union[str, Mapping[str, Any], ColumnConfig]


@dataclass(frozen=True)
class Column:
    idx: int
    key: str
    label: str
    accessor: Optional[Accessor] = None
    render: Optional[CellRenderer] = None
    sort_fn: Optional[SortFn] = None
    formatter: Optional[Formatter] = None
    sortable: bool = True
    width: Optional[int] = None

    def value(self, row: Any) -> Any:
        """Read this column's value from ``row``; ``None`` when it cannot be derived."""
        accessor = self.accessor
        if accessor is None or row is None:
            return None
        if callable(accessor):
            return accessor(row)
        if isinstance(row, Mapping):
            return row.get(accessor)
        return getattr(row, accessor, None)

    def text(self, row: Any) -> str:
        value = self.value(row)
        if self.formatter is not None:
            return self.formatter(value, row)
        return cell_text(value)


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def label_to_key(label: str) -> str:
    return _WHITESPACE_RE.sub("", label.lower())


def _normalize_one(descriptor: ColumnDescriptor, idx: int) -> Column:
    if isinstance(descriptor, str):
        key = label_to_key(descriptor)
        return Column(idx=idx, key=key, label=descriptor, accessor=key)

    if isinstance(descriptor, ColumnConfig):
        return Column(
            idx=idx,
            key=descriptor.key,
            label=descriptor.label,
            accessor=descriptor.accessor or descriptor.key or None,
            render=descriptor.render,
            sort_fn=descriptor.sort_fn,
            formatter=descriptor.formatter,
            sortable=descriptor.sortable,
            width=descriptor.width,
        )

    if isinstance(descriptor, Mapping):
        key = descriptor.get("key")
        label = descriptor.get("label")
        if label is None:
            label = key if key is not None else ""
        accessor = descriptor.get("accessor") or key or None
        if accessor is None:
            logger.debug("Column %s (%r) has no accessor; its cells render empty", idx, label)
        return Column(
            idx=idx,
            key=key if key is not None else "",
            label=str(label),
            accessor=accessor,
            render=descriptor.get("render") or descriptor.get("renderCell"),
            sort_fn=descriptor.get("sort_fn") or descriptor.get("sortFn"),
            formatter=descriptor.get("formatter"),
            sortable=bool(descriptor.get("sortable", True)),
            width=descriptor.get("width"),
        )

    raise TypeError(f"Unsupported column descriptor at position {idx}: {descriptor!r}")


def normalize_columns(descriptors: Sequence[ColumnDescriptor]) -> List[Column]:
    """Canonicalize column descriptors.

    Labels, mappings and ``ColumnConfig`` objects all become ``Column``
    instances. ``idx`` is the position in ``descriptors`` and is the stable
    identity used by hide and resize state.
    """
    return [_normalize_one(descriptor, idx) for idx, descriptor in enumerate(descriptors)]


@dataclass(frozen=True)
class ColumnGroup:
    label: str
    members: Tuple[int, ...]


GroupDescriptor = Union[Tuple[str, Sequence[Union[int, str]]], Mapping[str, Any]]


def _resolve_member(member: Union[int, str], columns: Sequence[Column]) -> int:
    if isinstance(member, int):
        if not 0 <= member < len(columns):
            raise ValueError(f"Column group refers to unknown column index {member}")
        return member
    for col in columns:
        if col.key == member or col.label == member:
            return col.idx
    raise ValueError(f"Column group refers to unknown column {member!r}")


def normalize_column_groups(
    descriptors: Optional[Sequence[GroupDescriptor]],
    columns: Sequence[Column],
) -> List[ColumnGroup]:
    """Resolve grouped-header descriptors against normalized columns.

    A descriptor is ``(label, members)`` or ``{"label": ..., "columns": [...]}``;
    members are column indices, keys or labels (or mappings carrying a ``key``).
    A column belongs to at most one group.
    """
    groups: List[ColumnGroup] = []
    owner: Dict[int, str] = {}
    for descriptor in descriptors or ():
        if isinstance(descriptor, Mapping):
            label = str(descriptor.get("label", ""))
            members = descriptor.get("columns") or ()
        else:
            label, members = descriptor
        resolved = []
        for member in members:
            if isinstance(member, Mapping):
                member = member.get("key", member.get("label"))
            idx = _resolve_member(member, columns)
            if idx in owner:
                raise ValueError(f"Column {idx} is in both {owner[idx]!r} and {label!r}")
            owner[idx] = label
            resolved.append(idx)
        groups.append(ColumnGroup(label=label, members=tuple(resolved)))
    return groups
