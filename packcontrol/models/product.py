# packcontrol/models/product.py
import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, ForeignKey, DateTime, Enum, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from packcontrol.database import Base

# Units of measure a product can be counted in
class ProductUnit(str, enum.Enum):
    UN = "un"
    KG = "kg"
    L = "l"
    M = "m"
    M2 = "m2"
    M3 = "m3"
    CX = "cx"
    PC = "pc"

# Model Product
# Catalog entry with its stock level. current_stock is a projection of the
# stock_movements ledger and is written only by services.ledger.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    barcode = Column(String(100), nullable=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(String(1000), nullable=True)

    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)

    unit = Column(
        Enum(ProductUnit, name="product_unit", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProductUnit.UN,
    )

    # Stock levels. current_stock has no floor: exits may drive it negative.
    current_stock = Column(Numeric(10, 2), nullable=False, default=0)
    minimum_stock = Column(Numeric(10, 2), CheckConstraint("minimum_stock >= 0"), nullable=False, default=0)
    price = Column(Numeric(10, 2), CheckConstraint("price IS NULL OR price >= 0"), nullable=True)

    image_url = Column(String, nullable=True)
    batch_control = Column(Boolean, nullable=False, default=False)
    expiration_control = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    movements = relationship(
        "StockMovement",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) <= (self.minimum_stock or 0)
