import logging

import uvicorn
from dotenv import load_dotenv

from chatwidget import create_app
from chatwidget.core.config import get_settings

# Load .env before the settings are read
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = create_app(settings)


def main():
    logger.info(f"Starting server on {settings.HOST}:{settings.PORT} ({settings.ENVIRONMENT})")
    logger.info(f"Health check: http://localhost:{settings.PORT}/health")
    logger.info(f"WhatsApp webhook: http://localhost:{settings.PORT}/webhook")
    uvicorn.run(
        "chatwidget.api.server:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
    )


if __name__ == "__main__":
    main()
