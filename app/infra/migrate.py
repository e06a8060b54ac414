from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy.engine import Connection

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def run_upgrade_head(revision: str = "head", connection: Connection | None = None) -> None:
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "infra" / "migrations"))
    if connection is not None:
        # reuse the caller's connection and leave its logging alone
        config.attributes["connection"] = connection
        config.attributes["configure_logger"] = False
    logger.info("upgrading violation store schema to {}", revision)
    command.upgrade(config, revision)


if __name__ == "__main__":
    run_upgrade_head()
