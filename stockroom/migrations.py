"""
Stockroom — Database Migrator
===============================

What:  The store's readiness operation: apply pending Alembic migrations.
Why:   `alembic upgrade head` both proves the database accepts connections and
       brings the schema up to date, which is exactly what "ready" means here.
How:   Builds an Alembic Config in code (no alembic.ini needed at runtime)
       pointing at the migration scripts shipped inside the package.
Who:   Wrapped by StartupReadinessGuard during application startup; also
       usable from a shell via `alembic upgrade head` with the root alembic.ini.

Threading note:
    The Alembic environment (stockroom/alembic/env.py) drives the async engine
    with asyncio.run(), so migrate() must be called from a thread without a
    running event loop. The lifespan handler uses asyncio.to_thread for this.
"""

import logging

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

# Package-relative script location ("package:directory"), resolved by Alembic
SCRIPT_LOCATION = "stockroom:alembic"


class DatabaseMigrator:
    """
    Applies schema migrations to one database.

    The database URL is passed explicitly so the guard works against whatever
    store the caller constructed (tests point it at SQLite).
    """

    def __init__(self, database_url: str, revision: str = "head"):
        self.database_url = database_url
        self.revision = revision

    def alembic_config(self) -> Config:
        config = Config()
        config.set_main_option("script_location", SCRIPT_LOCATION)
        # Percent signs in passwords would otherwise be read as interpolation
        config.set_main_option("sqlalchemy.url", self.database_url.replace("%", "%%"))
        return config

    def migrate(self) -> None:
        """Upgrade the schema to `self.revision`. Raises whatever Alembic/the driver raises."""
        logger.debug("Running alembic upgrade to %s", self.revision)
        command.upgrade(self.alembic_config(), self.revision)
