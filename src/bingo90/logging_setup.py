from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'


def setup_logging(
    *, level: str = "INFO", log_file: Optional[str] = None, json_format: bool = False, colors: str = "auto"
) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    console = Console(
        stderr=True,
        no_color=(colors == "never"),
        force_terminal=True if colors == "always" else None,
    )
    handlers: List[logging.Handler] = []
    handlers.append(RichHandler(console=console, rich_tracebacks=True, show_time=True, show_level=True))
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(lvl)
        file_handler.setFormatter(logging.Formatter(JSON_FORMAT if json_format else TEXT_FORMAT))
        handlers.append(file_handler)
    logging.basicConfig(level=lvl, handlers=handlers, force=True)
