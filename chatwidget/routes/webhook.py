import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import PlainTextResponse

from chatwidget.api.deps import AppServices, get_services
from chatwidget.api.whatsapp_api import parse_inbound_message

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/webhook")
async def verify_webhook(request: Request, services: AppServices = Depends(get_services)):
    """
    Handles the WhatsApp webhook verification handshake.
    """
    params = request.query_params
    mode = params.get("hub.mode")
    token = params.get("hub.verify_token")
    challenge = params.get("hub.challenge")

    verify_token = services.settings.WHATSAPP_VERIFY_TOKEN
    logger.info(f"Webhook verification attempt - Mode: {mode}")

    if mode == "subscribe" and verify_token and token == verify_token:
        logger.info("WhatsApp webhook verified")
        return PlainTextResponse(challenge or "")

    logger.error("Webhook verification failed")
    return Response(status_code=403)


@router.post("/webhook")
async def receive_message(
    request: Request,
    background_tasks: BackgroundTasks,
    services: AppServices = Depends(get_services),
):
    """
    Acknowledges the delivery right away; the message is processed after the response is sent.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook POST with a body that is not JSON")
        return PlainTextResponse("OK")

    logger.info("Incoming webhook POST")
    inbound = parse_inbound_message(payload)
    if inbound is not None:
        background_tasks.add_task(services.agent.handle, inbound)
    return PlainTextResponse("OK")
