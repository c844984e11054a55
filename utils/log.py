"""Process-wide logging setup: one stream handler with a key=value line format."""
import logging
import sys
import threading
from typing import Any, Optional, Union

LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

_handler: Optional[logging.Handler] = None
_lock = threading.Lock()


def configure_logging(
    level: Union[int, str] = logging.INFO,
    stream: Any = None,
    handler: Optional[logging.Handler] = None,
) -> logging.Handler:
    """Install the handler on the root logger. Later calls only adjust the level."""
    global _handler
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    with _lock:
        if _handler is not None:
            return _handler
        _handler = handler or logging.StreamHandler(stream or sys.stderr)

    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)
    # SQL echo is controlled by settings.debug, not by the app log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return _handler


def reset_logging() -> None:
    """Detach the installed handler so the next configure_logging call installs a fresh one."""
    global _handler
    with _lock:
        h, _handler = _handler, None
    if h is not None:
        logging.getLogger().removeHandler(h)
