# packcontrol/routes/stock.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, joinedload
from typing import Optional, Literal

from packcontrol.database import get_db
from packcontrol.models.stock import StockMovement, MovementType
from packcontrol.models.users import User
from packcontrol.services import ledger
from packcontrol.utils.tokenJWT import get_current_user, stock_writer
from packcontrol.utils.audit import write_log, client_ip
from packcontrol.utils.dates import parse_iso
from packcontrol.utils.serialize import movement_out
import packcontrol.schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])


@router.get("/movements", response_model=stock_schemas.StockMovementPage)
def list_movements(
    product_id: Optional[int] = Query(None),
    type: Optional[MovementType] = Query(None),
    date_from: Optional[str] = Query(None, description="ISO date/datetime, inclusive"),
    date_to: Optional[str] = Query(None, description="ISO date/datetime, inclusive"),
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = ledger.movements_query(
        db,
        product_id=product_id,
        kind=type,
        date_from=parse_iso(date_from),
        date_to=parse_iso(date_to, end_of_day=True),
        order=order,
    )

    total = query.count()
    items = query.options(joinedload(StockMovement.product), joinedload(StockMovement.user)) \
        .offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": [movement_out(m) for m in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("/movements", response_model=stock_schemas.RecordedMovement, status_code=201)
def record_movement(
    payload: stock_schemas.StockMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(stock_writer),
):
    movement_id = ledger.record_movement(
        db,
        payload.product_id,
        payload.type,
        payload.quantity,
        current_user.id,
        batch_number=payload.batch_number,
        expiration_date=payload.expiration_date,
        notes=payload.notes,
    )

    movement = db.query(StockMovement).filter(StockMovement.id == movement_id).first()
    write_log(
        db, user_id=current_user.id, action="STOCK_MOVEMENT", resource="stock",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": movement_id, "product_id": payload.product_id,
              "type": payload.type.value, "quantity": str(movement.quantity)},
    )

    out = movement_out(movement).model_dump()
    out["current_stock"] = movement.product.current_stock
    return out


@router.get("/products/{product_id}/ledger", response_model=stock_schemas.StockMovementPage)
def product_ledger(
    product_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Full movement history of one product, oldest first."""
    ledger.get_product(db, product_id)
    query = ledger.movements_query(db, product_id=product_id, order="asc")
    total = query.count()
    items = query.options(joinedload(StockMovement.product), joinedload(StockMovement.user)) \
        .offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [movement_out(m) for m in items], "total": total, "page": page, "page_size": page_size}


@router.get("/products/{product_id}/reconcile", response_model=stock_schemas.ReconciliationOut)
def reconcile(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = ledger.reconcile_product(db, product_id)
    return {
        "product_id": result.product_id,
        "stored": result.stored,
        "computed": result.computed,
        "drift": result.drift,
        "in_sync": result.in_sync,
    }
