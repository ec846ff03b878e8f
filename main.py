"""
MovieMatch entry point.
Serves the rooms/votes/catalog API.
"""

import uvicorn
from loguru import logger

from moviematch.api import create_app
from moviematch.logging_config import configure_logging
from moviematch.settings import global_settings


def main() -> None:
    configure_logging(global_settings)
    logger.info("Starting MovieMatch...")

    uvicorn.run(
        create_app(),
        host=global_settings.api_host,
        port=global_settings.api_port,
        log_level=global_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
