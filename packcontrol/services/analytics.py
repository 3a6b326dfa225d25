"""Dashboard and report figures computed from product and movement collections.

Nothing here is stored. Every figure is recomputed from the rows handed in.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from packcontrol.models.category import Category
from packcontrol.models.product import Product
from packcontrol.models.stock import MovementType, StockMovement

ZERO = Decimal("0.00")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def _movement_type(movement: StockMovement) -> MovementType:
    return MovementType(movement.type)


def _movement_day(movement: StockMovement) -> Optional[date]:
    return movement.created_at.date() if movement.created_at else None


def is_low_stock(product: Product) -> bool:
    return _decimal(product.current_stock) <= _decimal(product.minimum_stock)


def total_products(products: Sequence[Product]) -> int:
    return len(products)


def low_stock_products(products: Iterable[Product]) -> List[Product]:
    return [p for p in products if is_low_stock(p)]


def low_stock_count(products: Iterable[Product]) -> int:
    return len(low_stock_products(products))


def inventory_value(products: Iterable[Product]) -> Decimal:
    # Products without a price count as zero
    return sum(
        (_decimal(p.price) * _decimal(p.current_stock) for p in products),
        ZERO,
    ).quantize(Decimal("0.01"))


def movements_on(movements: Iterable[StockMovement], day: date) -> List[StockMovement]:
    return [m for m in movements if _movement_day(m) == day]


def movements_today(movements: Iterable[StockMovement], today: Optional[date] = None) -> int:
    return len(movements_on(movements, today or utc_today()))


def movements_by_type(movements: Iterable[StockMovement]) -> Dict[str, int]:
    counts = Counter(_movement_type(m).value for m in movements)
    return {t.value: counts.get(t.value, 0) for t in MovementType}


def daily_movements(
    movements: Iterable[StockMovement], days: int = 7, today: Optional[date] = None
) -> List[dict]:
    """Entries and exits per day for the last ``days`` days, oldest first.

    Days without movements are present with zero counts.
    """
    today = today or utc_today()
    start = today - timedelta(days=days - 1)

    buckets = {start + timedelta(days=i): Counter() for i in range(days)}
    for m in movements:
        day = _movement_day(m)
        if day in buckets:
            buckets[day][_movement_type(m).value] += 1

    return [
        {
            "date": day,
            "entries": counter.get(MovementType.ENTRY.value, 0),
            "exits": counter.get(MovementType.EXIT.value, 0),
            "adjustments": counter.get(MovementType.ADJUSTMENT.value, 0),
        }
        for day, counter in buckets.items()
    ]


def stock_by_category(categories: Iterable[Category], products: Iterable[Product]) -> List[dict]:
    """Number of products in each category, in the order categories are given."""
    per_category = Counter(p.category_id for p in products)
    return [
        {"category_id": c.id, "name": c.name, "product_count": per_category.get(c.id, 0)}
        for c in categories
    ]


def top_stock(products: Iterable[Product], limit: int = 5) -> List[Product]:
    return sorted(products, key=lambda p: _decimal(p.current_stock), reverse=True)[:limit]
