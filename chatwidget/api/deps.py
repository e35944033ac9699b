import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from chatwidget.api.whatsapp_api import WhatsAppClient
from chatwidget.core.config import Settings
from chatwidget.database.database import build_engine, build_session_factory
from chatwidget.services.completion import CompletionClient
from chatwidget.services.whatsapp_agent import WhatsAppAgent
from chatwidget.utils.db_utils import KnowledgeStore

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Service handles built once at startup and shared read-only by every request."""

    settings: Settings
    store: Optional[KnowledgeStore]
    completion: Optional[CompletionClient]
    whatsapp: WhatsAppClient
    agent: WhatsAppAgent
    engine: Optional[AsyncEngine] = None


def build_services(settings: Settings) -> AppServices:
    engine = None
    store = None
    if settings.database_configured:
        engine = build_engine(settings)
        store = KnowledgeStore(build_session_factory(engine))
    else:
        logger.warning("Missing DATABASE_URL: database operations will return 503")

    completion = None
    if settings.ai_configured:
        completion = CompletionClient.from_settings(settings)
    else:
        logger.warning("Missing OPENAI_API_KEY: AI chat will return 503")

    whatsapp = WhatsAppClient.from_settings(settings)
    if not whatsapp.configured:
        logger.warning("Missing WHATSAPP_ACCESS_TOKEN or WHATSAPP_PHONE_NUMBER_ID: WhatsApp replies disabled")

    agent = WhatsAppAgent.from_settings(settings, store, completion, whatsapp)
    return AppServices(
        settings=settings,
        store=store,
        completion=completion,
        whatsapp=whatsapp,
        agent=agent,
        engine=engine,
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def require_admin(request: Request, x_admin_key: Optional[str] = Header(default=None)) -> None:
    """Guards bot management when ADMIN_API_KEY is set; open otherwise."""
    expected = get_services(request).settings.ADMIN_API_KEY
    if expected and x_admin_key != expected:
        logger.warning(f"Rejected bot management call to {request.url.path}")
        raise HTTPException(status_code=401, detail="Unauthorized")
