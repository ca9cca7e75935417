"""Root logger setup from LoggingConfig (config.yaml logging.* or env LOGGING_*).

Prism loggers are named prism.<module>. urllib3 is capped at INFO so a
DEBUG run does not print every token poll request.
"""

import logging

from prism.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

QUIET_LOGGERS = ("urllib3",)


def _resolve_level(level: str) -> int:
    """Map level name to logging constant; unknown names mean INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


def setup_logging(config: LoggingConfig) -> None:
    level = _resolve_level(config.level)
    logging.basicConfig(level=level, format=config.format or None, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
