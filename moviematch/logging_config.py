import sys

from loguru import logger

from moviematch.settings import Settings, global_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Replace loguru's default sink with one honoring LOG_LEVEL / LOG_JSON."""
    settings = settings or global_settings
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        serialize=settings.log_json,
        backtrace=False,
        diagnose=False,
    )
