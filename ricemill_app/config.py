import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


DEFAULT_PAGE_SIZE_OPTIONS: Tuple[int, ...] = (5, 10, 25, 50, 100)


@dataclass(frozen=True)
class GridConfig:
    page_size: int = 10
    page_size_options: Tuple[int, ...] = DEFAULT_PAGE_SIZE_OPTIONS
    page_window: int = 2
    min_column_width: int = 60
    export_filename: str = "export.csv"
    export_dir: Optional[str] = None
    log_level: str = "INFO"
    ui_port: int = 8550


def _read_int_env(name: str, default: int, *, min_value: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= min_value else default


def _read_int_list_env(name: str, default: Tuple[int, ...]) -> Tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    values = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            value = int(part)
        except ValueError:
            return default
        if value < 1:
            return default
        values.append(value)
    return tuple(sorted(set(values))) or default


def load_config() -> GridConfig:
    load_dotenv()
    page_size = _read_int_env("GRID_PAGE_SIZE", 10, min_value=1)
    options = _read_int_list_env("GRID_PAGE_SIZE_OPTIONS", DEFAULT_PAGE_SIZE_OPTIONS)
    if page_size not in options:
        options = tuple(sorted(set(options) | {page_size}))

    return GridConfig(
        page_size=page_size,
        page_size_options=options,
        page_window=_read_int_env("GRID_PAGE_WINDOW", 2, min_value=0),
        min_column_width=_read_int_env("GRID_MIN_COLUMN_WIDTH", 60, min_value=1),
        export_filename=(os.getenv("GRID_EXPORT_FILENAME") or "export.csv").strip() or "export.csv",
        export_dir=os.getenv("GRID_EXPORT_DIR") or None,
        log_level=(os.getenv("GRID_LOG_LEVEL") or "INFO").strip().upper(),
        ui_port=_read_int_env("GRID_UI_PORT", 8550, min_value=1),
    )
