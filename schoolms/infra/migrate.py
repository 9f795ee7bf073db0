from __future__ import annotations

from alembic import command
from alembic.config import Config

from schoolms.infra.logging import get_logger, setup_logging

logger = get_logger(__name__)


def run_upgrade_head(config_path: str = "alembic.ini") -> None:
    config = Config(config_path)
    logger.info("migrations.upgrade", target="head", config=config_path)
    command.upgrade(config, "head")


if __name__ == "__main__":
    setup_logging()
    run_upgrade_head()
