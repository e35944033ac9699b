import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from chatwidget.api.deps import AppServices, get_services, require_admin
from chatwidget.core.errors import StoreError

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)

DB_NOT_CONFIGURED = "Database not configured. Please set DATABASE_URL."


class BotPayload(BaseModel):
    name: Optional[str] = None
    greeting: Optional[str] = None
    context: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.get("/get-bot")
async def get_bot(id: Optional[str] = None, services: AppServices = Depends(get_services)):
    """Loads a bot for the widget."""
    if not id:
        return JSONResponse(status_code=400, content={"error": "Bot ID is required"})
    if services.store is None:
        return JSONResponse(status_code=503, content={"error": DB_NOT_CONFIGURED})

    try:
        bot = await services.store.get_bot(id)
    except StoreError:
        return JSONResponse(status_code=404, content={"error": "Bot not found"})
    if bot is None:
        return JSONResponse(status_code=404, content={"error": "Bot not found"})
    return bot


@router.post("/create-bot", dependencies=[Depends(require_admin)])
async def create_bot(payload: BotPayload, services: AppServices = Depends(get_services)):
    if not payload.name or not payload.greeting:
        return _error(400, "Name and greeting are required")
    if services.store is None:
        return _error(503, DB_NOT_CONFIGURED)

    try:
        bot = await services.store.create_bot(payload.name, payload.greeting, payload.context or "")
    except StoreError:
        return _error(500, "Failed to create bot")
    if not bot:
        return _error(500, "Failed to create bot")
    return {"success": True, "id": bot["id"], "bot": bot}


@router.get("/list-bots", dependencies=[Depends(require_admin)])
async def list_bots(services: AppServices = Depends(get_services)):
    if services.store is None:
        return _error(503, DB_NOT_CONFIGURED)
    try:
        bots = await services.store.list_bots()
    except StoreError:
        return _error(500, "Failed to list bots")
    return {"success": True, "bots": bots}


@router.put("/update-bot/{bot_id}", dependencies=[Depends(require_admin)])
async def update_bot(bot_id: str, payload: BotPayload, services: AppServices = Depends(get_services)):
    if services.store is None:
        return _error(503, DB_NOT_CONFIGURED)

    changes = payload.model_dump(exclude_none=True)
    try:
        bot = await services.store.update_bot(bot_id, changes)
    except StoreError:
        return _error(500, "Failed to update bot")
    if bot is None:
        return _error(404, "Bot not found")
    return {"success": True, "bot": bot}


@router.delete("/delete-bot/{bot_id}", dependencies=[Depends(require_admin)])
async def delete_bot(bot_id: str, services: AppServices = Depends(get_services)):
    if services.store is None:
        return _error(503, DB_NOT_CONFIGURED)
    try:
        await services.store.delete_bot(bot_id)
    except StoreError:
        return _error(500, "Failed to delete bot")
    return {"success": True, "message": "Bot deleted successfully"}
