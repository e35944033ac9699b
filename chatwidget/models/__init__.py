from chatwidget.models.base import Base
from chatwidget.models.bot import Bot
from chatwidget.models.customer import Customer
from chatwidget.models.conversation import ConversationEntry
from chatwidget.models.order import Order

__all__ = ["Base", "Bot", "Customer", "ConversationEntry", "Order"]
