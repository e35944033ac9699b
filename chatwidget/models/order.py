from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from chatwidget.models.base import Base, isoformat, utcnow

PENDING = "pending"


class Order(Base):
    __tablename__ = "whatsapp_orders"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("whatsapp_customers.id"), index=True)
    phone_number = Column(String, index=True, nullable=False)
    status = Column(String, nullable=False, default=PENDING)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "phone_number": self.phone_number,
            "status": self.status,
            "created_at": isoformat(self.created_at),
        }
