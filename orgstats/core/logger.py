import sys
from pathlib import Path

from loguru import logger

from orgstats.core.config import settings

PRETTY_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> {extra}"
)


def setup_logging(sink=sys.stdout) -> None:
    """
    Install the console sink (and the rotating file sink when enabled).

    "json" serializes each record with loguru itself, so quotes and newlines
    in messages or extra fields stay valid JSON. "pretty" is for terminals.
    """
    logger.remove()
    logger.configure(extra={"name": "orgstats"})

    serialize = settings.LOG_FORMAT == "json"
    sink_options = {
        "format": "{message}" if serialize else PRETTY_FORMAT,
        "serialize": serialize,
        "level": settings.LOG_LEVEL,
        "backtrace": True,
        "diagnose": False,
    }

    logger.add(sink, colorize=not serialize, **sink_options)

    if settings.LOG_TO_FILE:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "orgstats_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="7 days",
            compression="zip",
            **sink_options,
        )

    logger.info(
        "Logging initialized",
        extra={
            "log_level": settings.LOG_LEVEL,
            "log_format": settings.LOG_FORMAT,
            "log_to_file": settings.LOG_TO_FILE,
        },
    )


def get_logger(name: str):
    """Logger bound to a module name; pass structured context via extra=."""
    return logger.bind(name=name)
