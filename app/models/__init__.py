"""
Database models read by the coaching engine.

Import all models here so relationship targets resolve at mapper configuration.
"""

from app.database import Base
from app.models.member_type import MemberType
from app.models.member import Member
from app.models.logs import MealLog, WaterLog, ExerciseLog, WeightLog
from app.models.order import Order, OrderItem, STOCK_ORDER_STATUSES

__all__ = [
    "Base",
    "MemberType",
    "Member",
    "MealLog",
    "WaterLog",
    "ExerciseLog",
    "WeightLog",
    "Order",
    "OrderItem",
    "STOCK_ORDER_STATUSES",
]
