import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatwidget.api.deps import AppServices, build_services
from chatwidget.core.config import Settings, get_settings
from chatwidget.database.database import create_tables, init_db
from chatwidget.routes import bots, chat, health, webhook, widget

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[AppServices] = None) -> FastAPI:
    settings = settings or get_settings()
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services.engine is not None:
            await init_db(services.engine)
            if settings.DB_CREATE_TABLES:
                await create_tables(services.engine)
        database = "connected" if services.store is not None else "not configured"
        ai = "configured" if services.completion is not None else "not configured"
        whatsapp = "configured" if services.whatsapp.configured else "not configured"
        logger.info(f"Services - database: {database}, ai: {ai}, whatsapp: {whatsapp}")
        yield
        logger.info("Shutting down...")
        await services.whatsapp.aclose()
        if services.engine is not None:
            await services.engine.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router)
    app.include_router(webhook.router)
    app.include_router(chat.router)
    app.include_router(bots.router)
    app.include_router(widget.router)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Route not found", "path": request.url.path})
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        path = request.url.path
        logger.warning(f"Rejected malformed request body for {path}")
        if path == "/api/chat":
            fields = {str(part) for error in exc.errors() for part in error.get("loc", ())}
            message = "Bot ID is required" if "botId" in fields and "message" not in fields else "Message is required"
            return JSONResponse(status_code=400, content={"reply": message})
        if path == "/api/create-bot":
            return JSONResponse(status_code=400, content={"success": False, "error": "Name and greeting are required"})
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})

    return app
