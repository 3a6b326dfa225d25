# Import every model so Base.metadata knows all tables (create_all, alembic)
from packcontrol.models.users import User
from packcontrol.models.category import Category
from packcontrol.models.supplier import Supplier
from packcontrol.models.product import Product, ProductUnit
from packcontrol.models.stock import StockMovement, MovementType
from packcontrol.models.log import Log

__all__ = [
    "User",
    "Category",
    "Supplier",
    "Product",
    "ProductUnit",
    "StockMovement",
    "MovementType",
    "Log",
]
