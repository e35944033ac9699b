import asyncio
import logging

from dotenv import load_dotenv

from chatwidget.core.config import Settings
from chatwidget.database.database import build_engine, create_tables, init_db

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def main():
    settings = Settings()
    if not settings.database_configured:
        logger.error("DATABASE_URL is not set")
        return

    engine = build_engine(settings)
    try:
        await init_db(engine)
        await create_tables(engine)
        logger.info("Schema created successfully")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
