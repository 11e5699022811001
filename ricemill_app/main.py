from __future__ import annotations

import logging
import os
from pathlib import Path
import sys

import flet as ft


def _configure_logging() -> None:
    from ricemill_app.config import load_config

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _get_target():
    from ricemill_app.ui_demo import main as target

    return target


def run() -> None:
    _configure_logging()
    view = ft.AppView.WEB_BROWSER if (os.getenv("GRID_UI") or "").strip().lower() == "web" else None
    if view is None:
        ft.app(target=_get_target())
    else:
        from ricemill_app.config import load_config

        ft.app(target=_get_target(), port=load_config().ui_port, view=view)


if __name__ == "__main__":
    project_root = Path(__file__).resolve().parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))
    run()
