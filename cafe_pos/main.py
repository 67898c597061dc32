"""Entry point for the cafe-pos Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from cafe_pos.config import DEBUG_LOG_PATH
from cafe_pos.pos_app import CafePosApp


def configure_logging(log_path: str | Path = DEBUG_LOG_PATH, level: int = logging.INFO) -> None:
    """Send core logging to the debug log file; the terminal belongs to the UI."""
    path = Path(log_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # Logging must never interfere with app flow.
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger("cafe_pos")
    root.setLevel(level)
    root.addHandler(handler)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    CafePosApp().run()


if __name__ == "__main__":
    main()
