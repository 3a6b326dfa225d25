# packcontrol/routes/stats.py
from datetime import datetime, time, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from packcontrol.config import settings
from packcontrol.database import get_db
from packcontrol.models.product import Product
from packcontrol.models.stock import StockMovement
from packcontrol.models.users import User
from packcontrol.services import analytics, ledger
from packcontrol.schemas.reports import DashboardSummary, RecentMovements
from packcontrol.utils.serialize import movement_out
from packcontrol.utils.tokenJWT import get_current_user

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)


# === Dashboard cards ===

@router.get("/summary", response_model=DashboardSummary)
def get_stats_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    products = db.query(Product).all()

    # Only today's movements are needed for the counter
    today = analytics.utc_today()
    todays = ledger.list_movements(db, date_from=datetime.combine(today, time.min, tzinfo=timezone.utc))

    return DashboardSummary(
        total_products=analytics.total_products(products),
        low_stock_products=analytics.low_stock_count(products),
        inventory_value=analytics.inventory_value(products),
        movements_today=analytics.movements_today(todays, today=today),
    )


# === Latest movements feed ===

@router.get("/recent-movements", response_model=RecentMovements)
def get_recent_movements(
    limit: Optional[int] = Query(None, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    rows = (
        ledger.movements_query(db, order="desc")
        .options(joinedload(StockMovement.product), joinedload(StockMovement.user))
        .limit(limit or settings.RECENT_MOVEMENTS_LIMIT)
        .all()
    )
    return RecentMovements(items=[movement_out(m) for m in rows])
