"""
Stock ledger engine.

A product's ``current_stock`` is the fold of its stock movements in
creation order, where each movement is applied with:

    entry       current + quantity
    exit        current - quantity   (no floor, stock may go negative)
    adjustment  quantity             (absolute level, not a delta)

``record_movement`` is the only write path for ``current_stock``. It
appends the movement and applies the rule in one transaction; any
database failure rolls both back.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from packcontrol.exceptions import (
    MovementValidationError,
    ProductNotFoundError,
    StorageError,
)
from packcontrol.models.product import Product
from packcontrol.models.stock import MovementType, StockMovement

logger = logging.getLogger(__name__)

# Matches the Numeric(10, 2) storage of quantities
QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")

MovementKind = Union[MovementType, str]


@dataclass(frozen=True)
class Reconciliation:
    product_id: int
    stored: Decimal
    computed: Decimal

    @property
    def drift(self) -> Decimal:
        return self.stored - self.computed

    @property
    def in_sync(self) -> bool:
        return self.drift == 0


def coerce_movement_type(kind: MovementKind) -> MovementType:
    if isinstance(kind, MovementType):
        return kind
    try:
        return MovementType(str(kind).lower())
    except ValueError:
        raise MovementValidationError(f"Unknown movement type: {kind!r}", kind=kind)


def _as_decimal(value) -> Decimal:
    if isinstance(value, bool):
        raise MovementValidationError(f"Quantity must be a number, got {value!r}", quantity=value)
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise MovementValidationError(f"Quantity must be a number, got {value!r}", quantity=value)
    if not quantity.is_finite():
        raise MovementValidationError(f"Quantity must be finite, got {value!r}", quantity=value)
    return quantity


def to_quantity(value) -> Decimal:
    """Convert to a Decimal with two places, the precision the ledger stores."""
    return _as_decimal(value).quantize(QUANTUM, rounding=ROUND_HALF_UP)


def validate_quantity(kind: MovementKind, value) -> Decimal:
    """Return the normalized quantity or raise MovementValidationError.

    entry and exit need a strictly positive quantity; adjustment accepts
    zero (empty the shelf) but nothing negative. More than two decimal
    places is refused rather than rounded.
    """
    movement_type = coerce_movement_type(kind)
    raw = _as_decimal(value)
    quantity = raw.quantize(QUANTUM, rounding=ROUND_HALF_UP)
    if quantity != raw:
        raise MovementValidationError(
            f"Quantity {value!r} has more than two decimal places", kind=movement_type.value, quantity=value
        )

    if movement_type is MovementType.ADJUSTMENT:
        if quantity < 0:
            raise MovementValidationError(
                "Adjustment quantity cannot be negative", kind=movement_type.value, quantity=quantity
            )
    elif quantity <= 0:
        raise MovementValidationError(
            f"{movement_type.value.capitalize()} quantity must be greater than zero",
            kind=movement_type.value,
            quantity=quantity,
        )
    return quantity


def apply_movement(current, kind: MovementKind, quantity) -> Decimal:
    movement_type = coerce_movement_type(kind)
    current = to_quantity(current)
    quantity = to_quantity(quantity)

    if movement_type is MovementType.ENTRY:
        return current + quantity
    if movement_type is MovementType.EXIT:
        return current - quantity
    return quantity


def fold_movements(movements: Iterable[StockMovement], start=ZERO) -> Decimal:
    """Reduce movements, already in creation order, to a stock level."""
    level = to_quantity(start)
    for movement in movements:
        level = apply_movement(level, movement.type, movement.quantity)
    return level


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def record_movement(
    db: Session,
    product_id: int,
    kind: MovementKind,
    quantity,
    user_id: int,
    *,
    batch_number: Optional[str] = None,
    expiration_date: Optional[date] = None,
    notes: Optional[str] = None,
    commit: bool = True,
) -> int:
    """Append a movement and update the product's stock atomically.

    Returns the id of the new movement. With ``commit=False`` the caller
    owns the transaction; the rows are flushed but not committed. On a
    database error the session is rolled back either way.

    Raises:
        MovementValidationError: unknown kind or quantity out of range.
        ProductNotFoundError: ``product_id`` does not exist.
        StorageError: the transaction failed and was rolled back.
    """
    movement_type = coerce_movement_type(kind)
    try:
        qty = validate_quantity(movement_type, quantity)
    except MovementValidationError:
        logger.warning(
            "Rejected %s of %r for product %s: invalid quantity", movement_type.value, quantity, product_id
        )
        raise

    try:
        # Row lock so concurrent writers on one product apply in sequence
        product = (
            db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )
        if product is None:
            logger.warning("Rejected %s for unknown product %s", movement_type.value, product_id)
            if commit:
                db.rollback()
            raise ProductNotFoundError(product_id)

        movement = StockMovement(
            product_id=product.id,
            user_id=user_id,
            type=movement_type,
            quantity=qty,
            batch_number=batch_number,
            expiration_date=expiration_date,
            notes=notes,
        )
        db.add(movement)

        # Deltas are computed by the database, not from the value loaded above
        if movement_type is MovementType.ENTRY:
            product.current_stock = Product.current_stock + qty
        elif movement_type is MovementType.EXIT:
            product.current_stock = Product.current_stock - qty
        else:
            product.current_stock = qty

        db.flush()
        movement_id = movement.id
        if commit:
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Stock movement for product %s failed, transaction rolled back", product_id, exc_info=True
        )
        raise StorageError(f"Could not record stock movement: {exc.__class__.__name__}") from exc

    logger.info(
        "Recorded %s of %s for product %s by user %s (movement %s)",
        movement_type.value, qty, product_id, user_id, movement_id,
    )
    return movement_id


def movements_query(
    db: Session,
    product_id: Optional[int] = None,
    kind: Optional[MovementKind] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    order: str = "desc",
) -> Query:
    query = db.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if kind is not None:
        query = query.filter(StockMovement.type == coerce_movement_type(kind))
    if date_from is not None:
        query = query.filter(StockMovement.created_at >= date_from)
    if date_to is not None:
        query = query.filter(StockMovement.created_at <= date_to)

    # id breaks ties between movements stamped in the same instant
    if order == "asc":
        return query.order_by(StockMovement.created_at.asc(), StockMovement.id.asc())
    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())


def list_movements(db: Session, **filters) -> List[StockMovement]:
    return movements_query(db, **filters).all()


def recompute_stock(db: Session, product_id: int) -> Decimal:
    """Rebuild a product's stock level from its full ledger."""
    get_product(db, product_id)
    return fold_movements(movements_query(db, product_id=product_id, order="asc"))


def reconcile_product(db: Session, product_id: int) -> Reconciliation:
    product = get_product(db, product_id)
    computed = fold_movements(movements_query(db, product_id=product_id, order="asc"))
    result = Reconciliation(product_id=product.id, stored=to_quantity(product.current_stock), computed=computed)
    if not result.in_sync:
        logger.warning(
            "Stock drift on product %s: stored %s, ledger %s", product_id, result.stored, result.computed
        )
    return result
