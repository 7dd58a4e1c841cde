"""
Logging configuration for the launcher command line.

Provides a single setup_logging function that configures:
- Console output (debug level with ``--verbose``, info otherwise)
- Optional file output to {log_dir}/{name}.log, truncated on each start
- Quieter third-party loggers (asyncio, aiohttp)
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from cardano_launcher.config import env_bool

_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as e:  # policy_guard: allow-silent-handler
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", logger.name, e)
        logger.removeHandler(handler)


def _build_console_handler(level: int) -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    console_handler.setLevel(level)
    return console_handler


def _build_file_handler(name: str, log_dir: Path, append: bool) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"{name}.log"
    handler_cls = getattr(logging.handlers, "WatchedFileHandler", logging.FileHandler)
    file_handler = handler_cls(log_path, mode="a" if append else "w")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    file_handler.setLevel(logging.DEBUG)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def setup_logging(
    name: str = "cardano-launcher",
    *,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
) -> None:
    """Configure the root logger for the launcher process."""

    with _config_lock:
        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        console_level = logging.DEBUG if verbose else logging.INFO
        root_logger.addHandler(_build_console_handler(console_level))

        if log_dir is not None:
            append = env_bool("CARDANO_LAUNCHER_LOG_APPEND", or_value=False)
            root_logger.addHandler(_build_file_handler(name, Path(log_dir), append))

        root_logger.setLevel(logging.DEBUG)
        _suppress_noisy_third_parties()
