# packcontrol/routes/reports.py
from datetime import datetime, time, timedelta, timezone
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from packcontrol.config import settings
from packcontrol.database import get_db
from packcontrol.models.category import Category
from packcontrol.models.product import Product
from packcontrol.models.users import User
from packcontrol.services import analytics, ledger
from packcontrol.utils.tokenJWT import get_current_user
from packcontrol.schemas.reports import (
    LowStockPage, LowStockItem,
    MovementsByType,
    DailyMovementsResponse, DailyMovement,
    CategoryStockResponse, CategoryStock,
    TopStockResponse, TopStockItem,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _window_start(days: int) -> datetime:
    start_day = analytics.utc_today() - timedelta(days=days - 1)
    return datetime.combine(start_day, time.min, tzinfo=timezone.utc)


# -----------------------------
# 1) Low stock (current <= minimum)
# -----------------------------
@router.get("/low-stock", response_model=LowStockPage)
def report_low_stock(
    q: Optional[str] = Query(None, description="Search by name or code"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Product).filter(Product.current_stock <= Product.minimum_stock)
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.code.ilike(like)))

    total = query.count()
    rows = (query
            .order_by(Product.current_stock.asc(), Product.name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all())

    items: List[LowStockItem] = [
        LowStockItem(
            product_id=p.id,
            name=p.name,
            code=p.code,
            current_stock=p.current_stock,
            minimum_stock=p.minimum_stock,
        )
        for p in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# -----------------------------
# 2) Movements per type over the report window
# -----------------------------
@router.get("/movements-by-type", response_model=MovementsByType)
def report_movements_by_type(
    days: Optional[int] = Query(None, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    days = days or settings.REPORT_WINDOW_DAYS
    movements = ledger.list_movements(db, date_from=_window_start(days))
    counts = analytics.movements_by_type(movements)
    return MovementsByType(window_days=days, **counts)


# -----------------------------
# 3) Entries and exits per day, last 7 days
# -----------------------------
@router.get("/daily-movements", response_model=DailyMovementsResponse)
def report_daily_movements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    days = 7
    today = analytics.utc_today()
    movements = ledger.list_movements(db, date_from=_window_start(days))
    rows = analytics.daily_movements(movements, days=days, today=today)
    return DailyMovementsResponse(data=[DailyMovement(**r) for r in rows])


# -----------------------------
# 4) Products per category
# -----------------------------
@router.get("/stock-by-category", response_model=CategoryStockResponse)
def report_stock_by_category(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    categories = db.query(Category).order_by(Category.name.asc()).all()
    products = db.query(Product).all()
    rows = analytics.stock_by_category(categories, products)
    return CategoryStockResponse(data=[CategoryStock(**r) for r in rows])


# -----------------------------
# 5) Highest stock levels
# -----------------------------
@router.get("/top-stock", response_model=TopStockResponse)
def report_top_stock(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    products = db.query(Product).all()
    top = analytics.top_stock(products, limit=limit)
    return TopStockResponse(data=[
        TopStockItem(product_id=p.id, name=p.name, current_stock=p.current_stock) for p in top
    ])
