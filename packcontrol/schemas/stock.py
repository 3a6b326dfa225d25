# packcontrol/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional

from packcontrol.models.stock import MovementType

# Payload for recording a stock movement.
# Quantity ranges per type are checked by the ledger engine.
class StockMovementCreate(BaseModel):
    product_id: int
    type: MovementType
    quantity: Decimal
    batch_number: Optional[str] = Field(None, max_length=100)
    expiration_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

# Schema for returning stock movement details
class StockMovementResponse(BaseModel):
    id: int
    created_at: datetime
    product_id: int
    product_name: Optional[str] = None
    product_code: Optional[str] = None
    type: MovementType
    quantity: float
    batch_number: Optional[str] = None
    expiration_date: Optional[date] = None
    notes: Optional[str] = None
    user_id: int
    user_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# Result of recording a movement: the new ledger row plus the product's level after it
class RecordedMovement(StockMovementResponse):
    current_stock: float

# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementResponse]
    total: int
    page: int
    page_size: int

# Stored stock versus the stock rebuilt from the ledger
class ReconciliationOut(BaseModel):
    product_id: int
    stored: float
    computed: float
    drift: float
    in_sync: bool
