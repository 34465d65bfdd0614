"""Helpers to launch the local web dashboard."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .paths import get_log_path
from .store import TimerStore
from .webapp import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_LOGGER_NAMES = ("mdtimer", "uvicorn.error", "uvicorn.access")


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8766,
    store: Optional[TimerStore] = None,
    open_browser: bool = True,
    log_level: str = "info",
    log_path: Optional[Path] = None,
) -> None:
    """Serve the dashboard until interrupted, logging to ``log_path`` as well.

    The dashboard usually outlives the terminal that started it, so request
    and error logs are also appended to the per-user log file.
    """
    store = store or TimerStore.from_config_file()
    app = create_app(store=store)
    handler = attach_file_logging(log_path or get_log_path(), log_level)

    url = f"http://{host}:{port}"
    logger.info("Serving %s on %s", store.timers_directory, url)
    if open_browser:
        threading.Thread(
            target=_launch_browser_after_delay, args=(url,), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    try:
        uvicorn.run(app, host=host, port=port, log_level=log_level)
    finally:
        if handler is not None:
            for name in _LOGGER_NAMES:
                logging.getLogger(name).removeHandler(handler)
            handler.close()


def attach_file_logging(path: Path, level: str = "info") -> Optional[logging.FileHandler]:
    """Append dashboard and uvicorn logs to ``path``; ``None`` if it cannot be opened."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        logger.warning("Could not open dashboard log file %s", path, exc_info=True)
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level.upper())
    for name in _LOGGER_NAMES:
        target = logging.getLogger(name)
        target.addHandler(handler)
        if target.getEffectiveLevel() > handler.level:
            target.setLevel(handler.level)
    return handler


def _launch_browser_after_delay(url: str) -> None:
    time.sleep(1.0)
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Failed to launch browser for %s", url)
