from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from chatwidget.models.base import Base, isoformat, utcnow

INCOMING = "incoming"
OUTGOING = "outgoing"


class ConversationEntry(Base):
    __tablename__ = "whatsapp_conversations"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("whatsapp_customers.id"), index=True)
    phone_number = Column(String, index=True, nullable=False)
    message_type = Column(String, nullable=False)  # incoming | outgoing
    message_content = Column(Text, nullable=False, default="")
    external_message_id = Column(String, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "phone_number": self.phone_number,
            "message_type": self.message_type,
            "message_content": self.message_content,
            "created_at": isoformat(self.created_at),
        }
