import logging
import os
import typing as t

LOG_LEVEL_ENV = "HASHDETECT_LOG_LEVEL"


def setup_logging(level: t.Optional[str] = None) -> logging.Logger:
    """Configure root logging for an application embedding hashdetect.

    `level` falls back to $HASHDETECT_LOG_LEVEL, then INFO. Returns the
    package logger.
    """
    name = level or os.environ.get(LOG_LEVEL_ENV) or "INFO"
    levelno = getattr(logging, name.upper(), logging.INFO)
    fmt = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    logging.basicConfig(level=levelno, format=fmt)
    pkg = logging.getLogger("hashdetect")
    pkg.setLevel(levelno)
    return pkg
