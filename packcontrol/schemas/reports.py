# packcontrol/schemas/reports.py
from datetime import date
from typing import List, Optional
from pydantic import BaseModel

from packcontrol.schemas.stock import StockMovementResponse

# Dashboard cards
class DashboardSummary(BaseModel):
    total_products: int
    low_stock_products: int
    inventory_value: float
    movements_today: int

class RecentMovements(BaseModel):
    items: List[StockMovementResponse]

# Schemas for low stock alerting
class LowStockItem(BaseModel):
    product_id: int
    name: str
    code: Optional[str] = None
    current_stock: float
    minimum_stock: float

class LowStockPage(BaseModel):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int

# Movement counts per type over the report window
class MovementsByType(BaseModel):
    entry: int
    exit: int
    adjustment: int
    window_days: int

class DailyMovement(BaseModel):
    date: date
    entries: int
    exits: int
    adjustments: int

class DailyMovementsResponse(BaseModel):
    data: List[DailyMovement]

class CategoryStock(BaseModel):
    category_id: int
    name: str
    product_count: int

class CategoryStockResponse(BaseModel):
    data: List[CategoryStock]

class TopStockItem(BaseModel):
    product_id: int
    name: str
    current_stock: float

class TopStockResponse(BaseModel):
    data: List[TopStockItem]
