from uuid import uuid4

from sqlalchemy import Column, DateTime, Text, Uuid

from chatwidget.models.base import Base, isoformat, utcnow


class Bot(Base):
    __tablename__ = "chatbots"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    greeting = Column(Text, nullable=False)
    context = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "greeting": self.greeting,
            "context": self.context,
            "created_at": isoformat(self.created_at),
        }
