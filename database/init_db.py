#!/usr/bin/env python3
"""
Create (or verify) the relocation CRM tables.

Usage:
    python -m database.init_db
"""

import logging

from tenacity import retry, stop_after_attempt, wait_fixed

from core.config_loader import load_config
from database.database import configure_database
from database.models import Base

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2))
def init_db(url: str = None):
    logger.info("Initializing database...")
    try:
        engine = configure_database(url)
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created or verified.")
        return engine
    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise


def main():
    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format
    )
    init_db(config.database.url)


if __name__ == "__main__":
    main()
