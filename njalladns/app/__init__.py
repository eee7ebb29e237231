from loguru import logger
import sys
from njalladns.config import config


def configure_logging():
    logger.remove()
    logger.add(
        sys.stderr,
        level=config.get_string("log_level").upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )
    log_file = config.get_string("log_file")
    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="30 days",
            level="DEBUG",
        )
