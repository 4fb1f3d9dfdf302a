from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, Float
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base

# Orders in these states count as food the member has on hand
STOCK_ORDER_STATUSES = ("confirmed", "preparing", "ready", "delivered")


class Order(Base):
    """Food order placed by a member."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    member_id = Column(
        UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(
        String(20), nullable=False, default="pending"
    )  # pending, confirmed, preparing, ready, delivered, cancelled
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    member = relationship("Member", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("idx_orders_member_id", "member_id"),
        Index("idx_orders_created_at", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    food_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    calories = Column(Integer)
    protein = Column(Float)

    order = relationship("Order", back_populates="items")
