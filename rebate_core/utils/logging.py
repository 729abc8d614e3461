"""
Logging setup.

Configures loguru sinks with file rotation.
"""

import sys

from loguru import logger

from rebate_core.config.settings import Settings, settings as default_settings


def setup_logging(config: Settings | None = None) -> None:
    """Configure stderr and rotating file sinks."""
    config = config or default_settings

    logger.remove()
    logger.add(sys.stderr, level=config.log_level)

    if config.log_file:
        logger.add(
            config.log_file,
            rotation=config.log_rotation,
            retention=config.log_retention,
            level=config.log_level,
            encoding="utf-8",
        )

    logger.info("Rebate core logging configured")
