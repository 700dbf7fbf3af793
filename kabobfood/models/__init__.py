"""ORM модели. Импорт пакета регистрирует все таблицы в `Base.metadata`."""

from kabobfood.models.address import Address
from kabobfood.models.catalog import Category, Product, Region
from kabobfood.models.order import Order, OrderItem, OrderStatus, OrderType
from kabobfood.models.user import AdminUser, User

__all__ = [
    "Address",
    "AdminUser",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "Product",
    "Region",
    "User",
]
