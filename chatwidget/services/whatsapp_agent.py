import asyncio
import logging
from typing import Awaitable, Callable, Optional

from chatwidget.api.whatsapp_api import InboundMessage, WhatsAppClient
from chatwidget.core.config import Settings
from chatwidget.core.errors import StoreNotConfigured
from chatwidget.models.conversation import INCOMING, OUTGOING
from chatwidget.services import prompts
from chatwidget.services.completion import CompletionClient
from chatwidget.services.intent import Intent, classify_intent
from chatwidget.utils.db_utils import KnowledgeStore

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, I'm having some trouble right now. Give me a second!"
FALLBACK_ORDER_REPLY = "Hey! Ready to order? I'll send you the link."
FALLBACK_GENERAL_REPLY = "Thanks for your message! How can I help you today?"


class WhatsAppAgent:
    """Handles one inbound WhatsApp text message from read receipt to logged reply."""

    def __init__(
        self,
        store: Optional[KnowledgeStore],
        completion: Optional[CompletionClient],
        whatsapp: WhatsAppClient,
        business_name: str = "Tap & Serve",
        typing_delay: float = 2.0,
        button_delay: float = 1.0,
        history_limit: int = 5,
        classify: Callable[[str], Intent] = classify_intent,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.completion = completion
        self.whatsapp = whatsapp
        self.business_name = business_name
        self.typing_delay = typing_delay
        self.button_delay = button_delay
        self.history_limit = history_limit
        self.classify = classify
        self._sleep = sleep
        self._claimed: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings, store, completion, whatsapp) -> "WhatsAppAgent":
        return cls(
            store=store,
            completion=completion,
            whatsapp=whatsapp,
            business_name=settings.BUSINESS_NAME,
            typing_delay=settings.TYPING_DELAY_SECONDS,
            button_delay=settings.BUTTON_DELAY_SECONDS,
            history_limit=settings.HISTORY_LIMIT,
        )

    async def pause(self, seconds: float) -> None:
        """Human-like pause; WhatsApp shows the contact as typing meanwhile."""
        if seconds > 0:
            await self._sleep(seconds)

    async def handle(self, inbound: InboundMessage) -> None:
        """Never raises: any failure is logged and answered with APOLOGY_MESSAGE."""
        # Covers redeliveries that arrive before the incoming row is saved
        if inbound.message_id in self._claimed:
            logger.info(f"Delivery of {inbound.message_id} already in progress, skipping")
            return
        self._claimed.add(inbound.message_id)
        try:
            await self._process(inbound)
        except Exception as e:
            logger.exception(f"Error handling WhatsApp message from {inbound.phone_number}: {str(e)}")
            await self.whatsapp.send_text(inbound.phone_number, APOLOGY_MESSAGE)
        finally:
            self._claimed.discard(inbound.message_id)

    async def _process(self, inbound: InboundMessage) -> None:
        if self.store is None:
            raise StoreNotConfigured("database not configured")

        phone = inbound.phone_number
        if await self.store.has_processed_message(inbound.message_id):
            logger.info(f"Duplicate delivery of {inbound.message_id}, skipping")
            return

        logger.info(f"Message from {phone}: {inbound.text}")
        await self.whatsapp.send_read_receipt(inbound.message_id)
        await self.pause(self.typing_delay)

        intent = self.classify(inbound.text)
        customer = await self.store.get_or_create_customer(phone, inbound.customer_name)
        await self.store.save_conversation(
            customer["id"], phone, INCOMING, inbound.text, external_message_id=inbound.message_id
        )
        history = await self.store.get_conversation_history(phone, self.history_limit)

        name = customer.get("customer_name") or "friend"
        if intent is Intent.ORDER:
            reply = await self.generate_order_reply(customer, history)
            await self.whatsapp.send_text(phone, reply)
            await self.pause(self.button_delay)
            await self.whatsapp.send_order_button(phone, name)
            await self.store.create_order_record(customer["id"], phone)
        else:
            reply = await self.generate_general_reply(inbound.text, history, customer)
            await self.whatsapp.send_text(phone, reply)

        await self.store.save_conversation(customer["id"], phone, OUTGOING, reply)

    async def generate_order_reply(self, customer: dict, history: list[dict]) -> str:
        if self.completion is None:
            return FALLBACK_ORDER_REPLY
        name = customer.get("customer_name") or "friend"
        is_returning = (customer.get("total_interactions") or 0) > 1
        system_prompt = prompts.order_persona(self.business_name, name, is_returning)
        return await self.completion.generate(
            system_prompt, prompts.ORDER_REQUEST, history=prompts.format_order_history(history)
        )

    async def generate_general_reply(self, message: str, history: list[dict], customer: dict) -> str:
        if self.completion is None:
            return FALLBACK_GENERAL_REPLY
        name = customer.get("customer_name") or "friend"
        system_prompt = prompts.general_persona(self.business_name, name)
        return await self.completion.generate(
            system_prompt, prompts.general_request(message), history=prompts.format_general_history(history)
        )
