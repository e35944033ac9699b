import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chatwidget.core.errors import StoreError
from chatwidget.models import Bot, ConversationEntry, Customer, Order
from chatwidget.models.base import utcnow
from chatwidget.models.conversation import INCOMING
from chatwidget.models.order import PENDING

logger = logging.getLogger(__name__)

BOT_FIELDS = ("name", "greeting", "context")


def _parse_bot_id(bot_id) -> Optional[uuid.UUID]:
    if isinstance(bot_id, uuid.UUID):
        return bot_id
    try:
        return uuid.UUID(str(bot_id))
    except (TypeError, ValueError):
        return None


class KnowledgeStore:
    """Keyed reads and writes of bots, WhatsApp customers, the conversation log and orders.

    Every method opens its own session; records come back as plain dicts.
    Database failures are logged and re-raised as StoreError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # Bots

    async def create_bot(self, name: str, greeting: str, context: str = "") -> dict:
        try:
            async with self._session_factory() as session:
                bot = Bot(
                    id=uuid.uuid4(),
                    name=name,
                    greeting=greeting,
                    context=context or "",
                    created_at=utcnow(),
                )
                session.add(bot)
                await session.commit()
                logger.info(f"Bot created: {bot.id}")
                return bot.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Error creating bot: {str(e)}")
            raise StoreError("create_bot failed") from e

    async def get_bot(self, bot_id) -> Optional[dict]:
        key = _parse_bot_id(bot_id)
        if key is None:
            return None
        try:
            async with self._session_factory() as session:
                bot = await session.get(Bot, key)
                return bot.to_dict() if bot else None
        except SQLAlchemyError as e:
            logger.error(f"Error reading bot {bot_id}: {str(e)}")
            raise StoreError("get_bot failed") from e

    async def list_bots(self) -> list[dict]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Bot).order_by(Bot.created_at.desc()))
                return [bot.to_dict() for bot in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing bots: {str(e)}")
            raise StoreError("list_bots failed") from e

    async def update_bot(self, bot_id, changes: dict) -> Optional[dict]:
        """Applies the supplied name/greeting/context values. Returns None when no bot matched."""
        key = _parse_bot_id(bot_id)
        if key is None:
            return None
        try:
            async with self._session_factory() as session:
                bot = await session.get(Bot, key)
                if bot is None:
                    return None
                for field in BOT_FIELDS:
                    if changes.get(field) is not None:
                        setattr(bot, field, changes[field])
                await session.commit()
                return bot.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Error updating bot {bot_id}: {str(e)}")
            raise StoreError("update_bot failed") from e

    async def delete_bot(self, bot_id) -> None:
        key = _parse_bot_id(bot_id)
        if key is None:
            return
        try:
            async with self._session_factory() as session:
                bot = await session.get(Bot, key)
                if bot is not None:
                    await session.delete(bot)
                    await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting bot {bot_id}: {str(e)}")
            raise StoreError("delete_bot failed") from e

    # WhatsApp customers and conversations

    async def get_or_create_customer(self, phone_number: str, name: Optional[str] = None) -> dict:
        """Bumps the interaction counter of an existing customer or creates one.

        Read-then-update, not atomic across concurrent deliveries for one phone number.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Customer).where(Customer.phone_number == phone_number)
                )
                customer = result.scalar_one_or_none()
                if customer is not None:
                    customer.last_interaction = utcnow()
                    customer.total_interactions = (customer.total_interactions or 0) + 1
                    customer.customer_name = name or customer.customer_name
                else:
                    now = utcnow()
                    customer = Customer(
                        phone_number=phone_number,
                        customer_name=name,
                        total_interactions=1,
                        last_interaction=now,
                        created_at=now,
                    )
                    session.add(customer)
                    logger.info(f"New WhatsApp customer: {phone_number}")
                await session.commit()
                return customer.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Error loading customer {phone_number}: {str(e)}")
            raise StoreError("get_or_create_customer failed") from e

    async def save_conversation(
        self,
        customer_id: int,
        phone_number: str,
        message_type: str,
        content: str,
        external_message_id: Optional[str] = None,
    ) -> dict:
        try:
            async with self._session_factory() as session:
                entry = ConversationEntry(
                    customer_id=customer_id,
                    phone_number=phone_number,
                    message_type=message_type,
                    message_content=content or "",
                    external_message_id=external_message_id,
                    created_at=utcnow(),
                )
                session.add(entry)
                await session.commit()
                return entry.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Error saving conversation for {phone_number}: {str(e)}")
            raise StoreError("save_conversation failed") from e

    async def get_conversation_history(self, phone_number: str, limit: int = 5) -> list[dict]:
        """Newest `limit` entries for the phone number, returned oldest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ConversationEntry)
                    .where(ConversationEntry.phone_number == phone_number)
                    .order_by(ConversationEntry.created_at.desc(), ConversationEntry.id.desc())
                    .limit(limit)
                )
                entries = [entry.to_dict() for entry in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error reading conversation history for {phone_number}: {str(e)}")
            raise StoreError("get_conversation_history failed") from e
        entries.reverse()
        return entries

    async def has_processed_message(self, external_message_id: str) -> bool:
        if not external_message_id:
            return False
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ConversationEntry.id)
                    .where(
                        ConversationEntry.external_message_id == external_message_id,
                        ConversationEntry.message_type == INCOMING,
                    )
                    .limit(1)
                )
                return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking message {external_message_id}: {str(e)}")
            raise StoreError("has_processed_message failed") from e

    async def create_order_record(self, customer_id: int, phone_number: str) -> dict:
        try:
            async with self._session_factory() as session:
                order = Order(
                    customer_id=customer_id,
                    phone_number=phone_number,
                    status=PENDING,
                    created_at=utcnow(),
                )
                session.add(order)
                await session.commit()
                logger.info(f"Order attempt recorded for {phone_number}")
                return order.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"Error creating order for {phone_number}: {str(e)}")
            raise StoreError("create_order_record failed") from e
