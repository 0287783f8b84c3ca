import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

_DEFAULT_LEVEL = os.getenv("PIXSCRUB_LOG_LEVEL", "INFO").upper()
_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"

_installed: List[logging.Handler] = []


def _resolve_level(level: Optional[str]) -> int:
    value = getattr(logging, (level or _DEFAULT_LEVEL).upper(), None)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> Optional[str]:
    desired_level = _resolve_level(level)
    root = logging.getLogger()
    if getattr(configure_logging, "_configured", False):
        root.setLevel(desired_level)
        return getattr(configure_logging, "_log_file", None)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.setLevel(desired_level)
    formatter = logging.Formatter(_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)
    _installed.append(stream_handler)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        _installed.append(file_handler)

    configure_logging._configured = True  # type: ignore[attr-defined]
    configure_logging._log_file = log_file  # type: ignore[attr-defined]
    root.debug("Logging configured. Log file: %s", log_file)
    return log_file


def reset_logging() -> None:
    """Remove the handlers installed by :func:`configure_logging`."""

    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()
    configure_logging._configured = False  # type: ignore[attr-defined]
    configure_logging._log_file = None  # type: ignore[attr-defined]
