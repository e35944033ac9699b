import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from chatwidget.api.deps import AppServices, get_services
from chatwidget.core.errors import CompletionError, CompletionErrorKind, StoreError
from chatwidget.services.prompts import build_knowledge_prompt

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)

COMPLETION_ERROR_REPLIES = {
    CompletionErrorKind.AUTH: (500, "AI service configuration error. Please contact support."),
    CompletionErrorKind.RATE_LIMITED: (429, "AI service is temporarily busy. Please try again in a moment."),
    CompletionErrorKind.GENERIC: (500, "I'm having trouble processing your message. Please try again."),
}


class ChatRequest(BaseModel):
    message: Optional[str] = None
    botId: Optional[str] = None


def _reply(status_code: int, text: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"reply": text})


@router.post("/chat")
async def chat(payload: ChatRequest, services: AppServices = Depends(get_services)):
    """Answers a widget message from the bot's knowledge base."""
    if not payload.message:
        return _reply(400, "Message is required")
    if not payload.botId:
        return _reply(400, "Bot ID is required")
    if services.store is None:
        return _reply(503, "Database not configured. Please contact support.")
    if services.completion is None:
        return _reply(503, "AI service not configured. Please contact support.")

    try:
        bot = await services.store.get_bot(payload.botId)
    except StoreError:
        return _reply(404, "Bot not found. Please check the bot ID.")
    if bot is None:
        return _reply(404, "Bot configuration not found.")

    try:
        text = await services.completion.generate(build_knowledge_prompt(bot), payload.message)
    except CompletionError as e:
        status_code, reply = COMPLETION_ERROR_REPLIES[e.kind]
        logger.error(f"Chat error for bot {payload.botId}: {e.kind.value}")
        return _reply(status_code, reply)

    return {"reply": text, "success": True}
