# packcontrol/models/stock.py
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Numeric, Date, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from packcontrol.database import Base

# Movement classification. entry/exit are deltas, adjustment sets an absolute level.
class MovementType(str, enum.Enum):
    ENTRY = "entry"
    EXIT = "exit"
    ADJUSTMENT = "adjustment"


def _utcnow():
    return datetime.now(timezone.utc)


# Append-only ledger row. Rows are never updated; they disappear only
# through the ON DELETE CASCADE of their product (see db_guards).
class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    type = Column(
        Enum(MovementType, name="movement_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    quantity = Column(Numeric(10, 2), nullable=False)

    # Optional lot tracking
    batch_number = Column(String(100), nullable=True)
    expiration_date = Column(Date, nullable=True)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)

    product = relationship("Product", back_populates="movements")
    user = relationship("User")
