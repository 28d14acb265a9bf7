from loguru import logger
import os

from querylens.app.core.settings import settings


def init_logging(path: str | None = None):
    """JSONL sink for the service; location, rotation and level come from settings."""
    path = path or settings.LOG_PATH
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    logger.remove()
    logger.add(
        path,
        format="{message}",
        serialize=True,
        enqueue=True,
        rotation=settings.LOG_ROTATION,
        retention=settings.LOG_RETENTION,
        backtrace=False,
        diagnose=False,
        level=settings.LOG_LEVEL,
    )
    return path
