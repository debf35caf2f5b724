import logging
import pathlib

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"


def run_migrations(database_uri: str, revision: str = "head") -> None:
    """Upgrade the schema once, before the service starts taking orders.

    Blocks; from async code call it through asyncio.to_thread.
    """
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    alembic_cfg.attributes["database_uri"] = database_uri
    alembic_cfg.attributes["configure_logger"] = False
    logger.info(f"Applying database migrations up to {revision}")
    command.upgrade(alembic_cfg, revision)
    logger.info("Database migrations applied")
