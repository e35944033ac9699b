from sqlalchemy import Column, DateTime, Integer, String

from chatwidget.models.base import Base, isoformat, utcnow


class Customer(Base):
    __tablename__ = "whatsapp_customers"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String, unique=True, index=True, nullable=False)
    customer_name = Column(String, nullable=True)
    total_interactions = Column(Integer, nullable=False, default=0)
    last_interaction = Column(DateTime(timezone=True), default=utcnow)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "phone_number": self.phone_number,
            "customer_name": self.customer_name,
            "total_interactions": self.total_interactions,
            "last_interaction": isoformat(self.last_interaction),
            "created_at": isoformat(self.created_at),
        }
