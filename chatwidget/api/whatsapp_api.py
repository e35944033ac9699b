import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from chatwidget.core.config import Settings

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com"


@dataclass(frozen=True)
class InboundMessage:
    phone_number: str
    message_id: str
    text: str
    customer_name: Optional[str] = None


def _first(items) -> Optional[dict]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def parse_inbound_message(payload) -> Optional[InboundMessage]:
    """
    Extracts the first text message from a WhatsApp Cloud API webhook envelope.

    Returns None for anything that is not a text message from a business account
    subscription (status updates, media, malformed bodies).
    """
    if not isinstance(payload, dict) or payload.get("object") != "whatsapp_business_account":
        return None

    entry = _first(payload.get("entry"))
    change = _first(entry.get("changes")) if entry else None
    value = change.get("value") if change else None
    if not isinstance(value, dict):
        return None

    msg = _first(value.get("messages"))
    if msg is None:
        return None
    if msg.get("type", "text") != "text":
        logger.info(f"Ignoring non-text WhatsApp message of type {msg.get('type')}")
        return None

    phone_number = msg.get("from")
    message_id = msg.get("id")
    text = msg.get("text")
    body = text.get("body") if isinstance(text, dict) else None
    if not isinstance(phone_number, str) or not isinstance(message_id, str) or not phone_number or not message_id:
        return None
    if body is not None and not isinstance(body, str):
        return None

    contact = _first(value.get("contacts"))
    profile = contact.get("profile") if contact else None
    customer_name = profile.get("name") if isinstance(profile, dict) else None
    if not isinstance(customer_name, str):
        customer_name = None

    return InboundMessage(
        phone_number=phone_number,
        message_id=message_id,
        text=body or "",
        customer_name=customer_name or None,
    )


class WhatsAppClient:
    """Outbound calls to the WhatsApp Cloud API. Failures are logged and reported as False."""

    def __init__(
        self,
        access_token: Optional[str],
        phone_number_id: Optional[str],
        api_version: str = "v24.0",
        order_page_url: str = "",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self.order_page_url = order_page_url
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppClient":
        return cls(
            access_token=settings.WHATSAPP_ACCESS_TOKEN,
            phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID,
            api_version=settings.WHATSAPP_API_VERSION,
            order_page_url=settings.ORDER_PAGE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.access_token and self.phone_number_id)

    @property
    def messages_url(self) -> str:
        return f"{GRAPH_API_URL}/{self.api_version}/{self.phone_number_id}/messages"

    def order_url(self, phone_number: str) -> str:
        return str(httpx.URL(self.order_page_url, params={"wa_number": phone_number}))

    async def _post(self, data: dict, description: str) -> bool:
        if not self.configured:
            logger.warning(f"WhatsApp not configured, skipping {description}")
            return False

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        try:
            response = await self.http_client.post(self.messages_url, headers=headers, json=data)
        except httpx.HTTPError as e:
            logger.error(f"Exception sending {description}: {str(e)}")
            return False

        if response.status_code >= 400:
            logger.error(f"Error sending {description}. Status: {response.status_code}")
            logger.error(f"Response: {response.text}")
            return False
        return True

    async def send_text(self, phone_number: str, body: str) -> bool:
        data = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": phone_number,
            "type": "text",
            "text": {"body": body},
        }
        sent = await self._post(data, f"text message to {phone_number}")
        if sent:
            logger.info(f"Sent to {phone_number}: {body[:50]}")
        return sent

    async def send_order_button(self, phone_number: str, customer_name: str) -> bool:
        """Sends the "Place Order" call-to-action; falls back to a plain text apology."""
        data = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": phone_number,
            "type": "interactive",
            "interactive": {
                "type": "cta_url",
                "body": {"text": f"Alright {customer_name}, ready when you are! 🍽️"},
                "action": {
                    "name": "cta_url",
                    "parameters": {
                        "display_text": "Place Order",
                        "url": self.order_url(phone_number),
                    },
                },
            },
        }
        if await self._post(data, f"order button to {phone_number}"):
            logger.info(f"Sent order button to {phone_number}")
            return True

        await self.send_text(
            phone_number,
            f"Sorry {customer_name}, having trouble with the order button. Try again in a moment!",
        )
        return False

    async def send_read_receipt(self, message_id: str) -> bool:
        data = {
            "messaging_product": "whatsapp",
            "status": "read",
            "message_id": message_id,
        }
        return await self._post(data, f"read receipt for {message_id}")

    async def aclose(self) -> None:
        await self.http_client.aclose()
