import sys
from pathlib import Path
import flet as ft

# Ensure project root is in path (running from scripts/)
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from ricemill_app.config import load_config
from ricemill_app.main import _configure_logging
from ricemill_app.ui_demo import main

if __name__ == "__main__":
    _configure_logging()
    port = load_config().ui_port
    print(f"Starting web app on port {port}...")
    ft.app(target=main, port=port, view=ft.AppView.WEB_BROWSER)
