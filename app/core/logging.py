import logging
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once.
    Falls back to settings.LOG_LEVEL when no level is given.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
    logging.getLogger().setLevel(level_name)
