from __future__ import annotations
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(*, debug: bool = False, log_dir: Optional[str] = None, log_path: Optional[str] = None) -> None:
    """Install a rotating file handler (and a console handler in debug mode) on the root logger.

    Safe to call more than once; only the first call adds handlers."""
    level = logging.DEBUG if debug else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_pdfoverlay_configured", False):
        return

    if log_path is None:
        directory = Path(log_dir) if log_dir else Path.cwd() / "logs"
        directory.mkdir(parents=True, exist_ok=True)
        log_path = str(directory / "pdfoverlay.log")

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    if debug:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(fmt)
        root.addHandler(console)

    setattr(root, "_pdfoverlay_configured", True)
