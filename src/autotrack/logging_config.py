from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional

# loggers whose records also land in a file of their own
DEDICATED_LOGS: dict[str, str] = {
    "autotrack.sync": "sync.log",
    "autotrack.auth": "auth.log",
}

_OWNED = "_autotrack_handler"


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Messages follow the ``event key=value ...`` convention, so the leading
    word is lifted into its own ``event`` field for grepping.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "event": message.split(" ", 1)[0] if message else "",
            "message": message,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _handler(path: Path, level: int) -> RotatingFileHandler:
    fh = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    fh.setLevel(level)
    setattr(fh, _OWNED, True)
    return fh


def _is_owned(handler: logging.Handler) -> bool:
    return getattr(handler, _OWNED, False)


def setup_logging(
    logs_dir: Path,
    level: int = logging.INFO,
    dedicated: Optional[Mapping[str, str]] = None,
) -> None:
    """Attach the JSON file handlers: app.log, errors.log and one file per dedicated logger.

    Safe to call twice; handlers installed by other code (test capture,
    embedding hosts) do not stop the files from being set up.
    """
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if any(_is_owned(h) for h in root.handlers):
        return

    root.addHandler(_handler(logs_dir / "app.log", level))
    root.addHandler(_handler(logs_dir / "errors.log", logging.ERROR))

    for name, filename in (DEDICATED_LOGS if dedicated is None else dedicated).items():
        logger = logging.getLogger(name)
        logger.addHandler(_handler(logs_dir / filename, logging.INFO))
        logger.setLevel(logging.INFO)


def teardown_logging() -> None:
    """Detach and close every handler added by ``setup_logging``."""
    for logger in [logging.getLogger(), *list(logging.root.manager.loggerDict.values())]:
        if not isinstance(logger, logging.Logger):
            continue
        for handler in [h for h in logger.handlers if _is_owned(h)]:
            logger.removeHandler(handler)
            handler.close()
