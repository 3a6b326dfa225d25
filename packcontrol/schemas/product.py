# packcontrol/schemas/product.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List

from packcontrol.models.product import ProductUnit


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _normalize_code(value):
    # Codes are stored trimmed and upper-case
    if value is None:
        return None
    code = value.strip().upper()
    if not code:
        raise ValueError("code must not be blank")
    return code


# Shared base attributes for product entities
class ProductBase(ORMBase):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    unit: ProductUnit = ProductUnit.UN
    minimum_stock: Decimal = Field(default=Decimal("0"), ge=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    batch_control: bool = False
    expiration_control: bool = False

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return _normalize_code(v)


# Schema for creating a new product.
# initial_stock is not written to the product: it becomes an adjustment movement.
# Unknown fields, current_stock included, are refused.
class ProductCreate(ProductBase):
    initial_stock: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)

    model_config = ConfigDict(extra="forbid")


# Schema for partial product updates. Stock is not editable here,
# it only changes through stock movements.
class ProductUpdate(ORMBase):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    barcode: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    unit: Optional[ProductUnit] = None
    minimum_stock: Optional[Decimal] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    batch_control: Optional[bool] = None
    expiration_control: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return _normalize_code(v)


# Full product representation
class ProductOut(ORMBase):
    id: int
    code: str
    name: str
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None
    unit: ProductUnit
    current_stock: float
    minimum_stock: float
    price: Optional[float] = None
    image_url: Optional[str] = None
    batch_control: bool = False
    expiration_control: bool = False
    is_low_stock: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
