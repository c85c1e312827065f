"""
Unified logging for the submission pipeline.

Every record carries the signature of the transaction being submitted
(`-` outside a submission), so interleaved submissions stay readable.
"""

import contextvars
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict

LOG_DIR = Path("logs")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(tx_signature)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_SIZE_MB = 10
BACKUP_COUNT = 5

_loggers: Dict[str, logging.Logger] = {}
_current_signature: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tx_signature", default=None
)


class SignatureFilter(logging.Filter):
    """Filter that adds tx_signature to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "tx_signature"):
            signature = _current_signature.get()
            record.tx_signature = signature[:16] if signature else "-"
        return True


_signature_filter = SignatureFilter()


def bind_log_signature(signature: str | None) -> contextvars.Token:
    """Stamp subsequent records in this context with `signature`."""
    return _current_signature.set(signature)


def unbind_log_signature(token: contextvars.Token) -> None:
    _current_signature.reset(token)


def get_log_signature() -> str | None:
    return _current_signature.get()


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Module logger whose records carry the bound signature."""
    logger = _loggers.get(name)
    if logger is None:
        logger = _loggers[name] = logging.getLogger(name)
        logger.setLevel(level)
        logger.addFilter(_signature_filter)
    return logger


def _install(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(_signature_filter)
    logging.getLogger().addHandler(handler)
    return handler


def setup_file_logging(
    filename: str = "tx_lander.log",
    level: int = logging.INFO,
    use_rotation: bool = True,
    log_dir: Path | None = None,
) -> Path:
    """Log to `log_dir/filename`, replacing whatever handlers the root logger had.

    Calling it again re-targets the output instead of duplicating lines.
    """
    path = (log_dir or LOG_DIR) / Path(filename).name
    path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    while root.handlers:
        old = root.handlers[0]
        root.removeHandler(old)
        old.close()

    if use_rotation:
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=MAX_LOG_SIZE_MB * 1024 * 1024,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    else:
        handler = logging.FileHandler(path, encoding="utf-8")
    _install(handler, level)
    return path


def setup_console_logging(level: int = logging.INFO) -> None:
    """Add a stdout handler unless one is already installed."""
    root = logging.getLogger()
    has_stdout = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
        for h in root.handlers
    )
    if not has_stdout:
        _install(logging.StreamHandler(sys.stdout), level)
