import logging
import os
import sys
from typing import Optional, Union

ROOT_LOGGER = "drishtifi"
FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(value: Union[str, int, None]) -> int:
    if isinstance(value, int):
        return value
    name = (value or "").upper().strip()
    if name == "WARN":
        name = "WARNING"
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def _package_logger() -> logging.Logger:
    """The `drishtifi` logger carrying all handlers; set up on first use."""
    root = logging.getLogger(ROOT_LOGGER)
    if getattr(root, "_drishtifi_configured", False):
        return root

    level = _coerce_level(os.environ.get("LOG_LEVEL", "INFO"))
    root.setLevel(level)
    formatter = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(formatter)
    root.addHandler(sh)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            root.warning("LOG_FILE %s could not be opened (%s); logging to stdout only", log_file, exc)
        else:
            fh.setFormatter(formatter)
            root.addHandler(fh)

    # uvicorn and the root logger have their own handlers
    root.propagate = False
    setattr(root, "_drishtifi_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return `drishtifi.<name>`; records flow to the shared package handlers.

    Honors LOG_LEVEL (default INFO) and LOG_FILE (optional, appended).
    """
    _package_logger()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_level(level: Optional[Union[str, int]]) -> None:
    """Override the package log level at runtime (e.g. from `serve --log-level`)."""
    _package_logger().setLevel(_coerce_level(level))
