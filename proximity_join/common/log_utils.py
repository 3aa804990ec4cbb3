"""Logging utilities for the proximity join.

Provides:
- configure_logging(): dictConfig from logging.json (or logging-dev.json),
  falling back to a structured basicConfig
- RunContextFilter: adds the active join run id to every record
"""

import contextvars
import json
import logging
import logging.config
from pathlib import Path

logger = logging.getLogger(__name__)

# Identifier of the join run executing in the current context
ctx_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="")

LOGGING_CONFIG_DIR = Path(__file__).parent.parent.parent


def configure_logging(config_file: str | None = None) -> None:
    """Configure logging from a JSON dictConfig file.

    Uses ``config_file`` if given, else logging-dev.json in the repository
    root. Relative paths resolve against the repository root. Falls back to
    basicConfig if the file is missing.
    """
    config_path = Path(config_file or "logging-dev.json")
    if not config_path.is_absolute():
        config_path = LOGGING_CONFIG_DIR / config_path

    if config_path.exists():
        with open(config_path) as f:
            logging.config.dictConfig(json.load(f))
    else:
        logging.basicConfig(
            level=logging.INFO,
            format=(
                '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
                '"logger": "%(name)s", "run_id": "%(run_id)s", "message": "%(message)s"}'
            ),
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        for handler in logging.getLogger().handlers:
            handler.addFilter(RunContextFilter())


class RunContextFilter(logging.Filter):
    """Adds the current join run id to log records.

    Sets ``record.run_id`` (empty string outside a run) so formatters can
    include it unconditionally.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = ctx_run_id.get()
        return True
