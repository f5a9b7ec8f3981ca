"""Console and file logging for deployment runs, with secret masking."""
import logging
from pathlib import Path
from typing import Optional, Set

from rich.console import Console
from rich.logging import RichHandler

console = Console()

LOG_DIR = Path("/var/log/autodeploy")
LOG_FILE = LOG_DIR / "autodeploy.log"
FALLBACK_LOG_FILE = Path("/tmp/autodeploy.log")
MASK = "****"

_secrets: Set[str] = set()
_file_handler: Optional[logging.FileHandler] = None


def register_secret(value: Optional[str]) -> None:
    """Mask `value` in every autodeploy log record from now on.

    Used for database passwords, which otherwise end up in command
    output and error messages.
    """
    if value:
        _secrets.add(value)


def clear_secrets() -> None:
    _secrets.clear()


class SecretFilter(logging.Filter):
    """Replaces registered secrets in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not _secrets:
            return True
        message = record.getMessage()
        for secret in _secrets:
            message = message.replace(secret, MASK)
        record.msg = message
        record.args = ()
        return True


def _open_log_file(path: Path) -> logging.FileHandler:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path)
    except OSError:
        # /var/log needs root; unprivileged dry runs still get a log
        return logging.FileHandler(FALLBACK_LOG_FILE)


def setup_file_logging(log_file: str = None, verbose: bool = False) -> Path:
    """Send every autodeploy record to a log file as well as the console.

    Args:
        log_file: Path to log file (defaults to /var/log/autodeploy/autodeploy.log)
        verbose: Also record debug output (command stdout)

    Returns:
        Path of the file actually written to
    """
    global _file_handler

    root_logger = logging.getLogger("autodeploy")
    level = logging.DEBUG if verbose else logging.INFO

    root_logger.setLevel(level)
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith("autodeploy.") and isinstance(logger, logging.Logger):
            logger.setLevel(level)

    if _file_handler is None:
        _file_handler = _open_log_file(Path(log_file) if log_file else LOG_FILE)
        _file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        _file_handler.addFilter(SecretFilter())
        root_logger.addHandler(_file_handler)
        _file_handler.setLevel(level)
        root_logger.info(f"autodeploy logging initialized: {_file_handler.baseFilename}")
    else:
        _file_handler.setLevel(level)
    return Path(_file_handler.baseFilename)


def get_logger(name: str) -> logging.Logger:
    """Get a logger that prints through the shared Rich console.

    File output is added separately by setup_file_logging().
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False, level=logging.INFO)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.addFilter(SecretFilter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
