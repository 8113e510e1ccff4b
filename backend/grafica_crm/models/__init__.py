from .base import Base
from .customer import Customer
from .order import Order, OrderImage

__all__ = ["Base", "Customer", "Order", "OrderImage"]
