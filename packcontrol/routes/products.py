# packcontrol/routes/products.py
import logging
from typing import Optional, List, Literal
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from packcontrol.database import get_db, commit_or_raise
from packcontrol.exceptions import (
    CategoryNotFoundError, ConflictError, StorageError, SupplierNotFoundError,
)
from packcontrol.models.category import Category
from packcontrol.models.product import Product
from packcontrol.models.stock import MovementType
from packcontrol.models.supplier import Supplier
from packcontrol.models.users import User
from packcontrol.services import ledger
from packcontrol.utils.audit import write_log, client_ip
from packcontrol.utils.serialize import product_out
from packcontrol.utils.tokenJWT import get_current_user, stock_writer, admin_only
import packcontrol.schemas.product as product_schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Products"])

_REQUIRED_FIELDS = {"code", "name", "unit", "minimum_stock", "batch_control", "expiration_control"}

# ---- HELPERS ----
def _ensure_code_free(db: Session, code: str, exclude_id: Optional[int] = None):
    query = db.query(Product).filter(Product.code == code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError(f"Product code {code} already exists")

def _check_references(db: Session, category_id: Optional[int], supplier_id: Optional[int]):
    if category_id is not None and db.get(Category, category_id) is None:
        raise CategoryNotFoundError(category_id)
    if supplier_id is not None and db.get(Supplier, supplier_id) is None:
        raise SupplierNotFoundError(supplier_id)


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name or code"),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    low_stock: bool = Query(False, description="Only products at or below their minimum"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=1000),
    sort_by: str = Query("name"),
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Product)

    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.code.ilike(like)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)
    if low_stock:
        query = query.filter(Product.current_stock <= Product.minimum_stock)

    allowed = {
        "id": Product.id, "code": Product.code, "name": Product.name,
        "price": Product.price, "current_stock": Product.current_stock,
        "minimum_stock": Product.minimum_stock, "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by.lower(), Product.name)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc(), Product.id.asc())

    total = query.count()
    items: List[Product] = (
        query.options(joinedload(Product.category), joinedload(Product.supplier))
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return {"items": [product_out(p) for p in items], "total": total, "page": page, "page_size": page_size}


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return product_out(ledger.get_product(db, product_id))


# =========================
# CREATE PRODUCT
# =========================
@router.post("/products", response_model=product_schemas.ProductOut, status_code=201)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(stock_writer),
):
    code = payload.code
    _ensure_code_free(db, code)
    _check_references(db, payload.category_id, payload.supplier_id)

    data = payload.model_dump(exclude={"initial_stock"})
    new_product = Product(**data, current_stock=0)

    # Product row and its opening balance commit together
    try:
        db.add(new_product)
        db.flush()
        if payload.initial_stock > 0:
            ledger.record_movement(
                db, new_product.id, MovementType.ADJUSTMENT, payload.initial_stock, current_user.id,
                notes="Opening balance", commit=False,
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Creating product %s failed", code, exc_info=True)
        raise StorageError(f"Could not create product: {exc.__class__.__name__}") from exc
    db.refresh(new_product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": new_product.id, "code": new_product.code, "initial_stock": str(payload.initial_stock)},
    )
    return product_out(new_product)


# =========================
# UPDATE PRODUCT (PATCH)
# =========================
@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(stock_writer),
):
    p = ledger.get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)
    # An explicit null on a required column means "leave as is"
    changes = {k: v for k, v in changes.items() if v is not None or k not in _REQUIRED_FIELDS}

    if "code" in changes and changes["code"] != p.code:
        _ensure_code_free(db, changes["code"], exclude_id=p.id)
    _check_references(db, changes.get("category_id"), changes.get("supplier_id"))

    for key, value in changes.items():
        setattr(p, key, value)

    commit_or_raise(db, "update product")
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": p.id, "fields": sorted(changes)},
    )
    return product_out(p)


# =========================
# DELETE
# =========================
@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    product = ledger.get_product(db, product_id)
    pid, pname = product.id, product.name
    # Movement history goes with the product (ON DELETE CASCADE)
    db.delete(product)
    commit_or_raise(db, "delete product")

    write_log(
        db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": pid},
    )
    return {"detail": f"Product '{pname}' deleted"}
