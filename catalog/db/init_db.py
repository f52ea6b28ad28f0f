"""
Database initialization - creates all tables and indexes
All database schema is defined in the SQLAlchemy models in catalog/models/
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.db.base import Base

# Import all models to ensure they are registered with Base.metadata
from catalog.models import Category, Product, AuditLog  # noqa: F401

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine):
    """
    Initialize database - create all tables and indexes
    This should be called on application startup
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialization completed successfully")
    except OSError as e:
        # Connection errors - the database is not running or not accessible
        logger.error("Cannot connect to database at startup: %s", e)
        raise
