import logging
from typing import Optional

from sqlalchemy.engine import Engine

from app.core.logging import setup_logging
from app.database.connection import Base, engine
from app.models.product import Product  # noqa: F401  registers the products table

logger = logging.getLogger(__name__)


def init_app(bind: Optional[Engine] = None, log_level: Optional[str] = None) -> Engine:
    """
    Configure logging and create the catalog tables.
    Returns the engine the schema was created on.
    """
    setup_logging(log_level)
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Marketplace catalog ready on %s", target.url)
    return target
