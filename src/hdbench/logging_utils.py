"""Logging setup and the per-trial logger handle."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("hdbench")


def setup_logging(level: int | str = "INFO", log_file: str | Path | None = None) -> logging.Logger:
    """
    Configure the ``hdbench`` logger with a console handler and an optional
    append-mode file handler.

    Calling it again replaces the handlers installed by a previous call, so it
    is safe to run once per worker process.

    Args:
        level: Logging level name or constant.
        log_file: Optional path of a log file; parent directories are created.

    Returns:
        logging.Logger: The configured ``hdbench`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


class TrialLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with the dataset, repetition and seed of a trial.

    >>> log = TrialLoggerAdapter(logging.getLogger("x"), {"dataset": "shipp", "repetition": 3, "seed": 204})
    >>> log.process("Random_Forest Error Rate: 0.1", {})[0]
    '[shipp rep=3 seed=204] Random_Forest Error Rate: 0.1'
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = self.extra or {}
        prefix = f"[{extra.get('dataset', '?')} rep={extra.get('repetition', '?')} seed={extra.get('seed', '?')}]"
        return f"{prefix} {msg}", kwargs
