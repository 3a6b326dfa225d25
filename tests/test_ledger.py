from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from packcontrol.exceptions import (
    ImmutableRecordError,
    MovementValidationError,
    ProductNotFoundError,
    StorageError,
)
from packcontrol.models.product import Product
from packcontrol.models.stock import MovementType, StockMovement
from packcontrol.services import ledger


def _movement_count(session, product_id=None):
    query = session.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    return query.count()


def _stock(session, product_id):
    session.expire_all()
    return session.get(Product, product_id).current_stock


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "kind,current,quantity,expected",
    [
        (MovementType.ENTRY, "10", "5", "15.00"),
        (MovementType.EXIT, "15", "3", "12.00"),
        (MovementType.EXIT, "2", "5", "-3.00"),
        (MovementType.ADJUSTMENT, "120", "50", "50.00"),
        ("entry", "0", "0.01", "0.01"),
    ],
)
def test_apply_movement(kind, current, quantity, expected):
    assert ledger.apply_movement(current, kind, quantity) == Decimal(expected)


def test_fold_applies_movements_in_order():
    movements = [
        StockMovement(type=MovementType.ENTRY, quantity=Decimal("10")),
        StockMovement(type=MovementType.EXIT, quantity=Decimal("4")),
        StockMovement(type=MovementType.ADJUSTMENT, quantity=Decimal("100")),
        StockMovement(type=MovementType.EXIT, quantity=Decimal("1.5")),
    ]
    assert ledger.fold_movements(movements) == Decimal("98.50")
    assert ledger.fold_movements([]) == Decimal("0.00")


@pytest.mark.parametrize("kind", ["entry", "exit"])
@pytest.mark.parametrize("quantity", [0, "0", -1, "-0.01"])
def test_entry_and_exit_need_positive_quantity(kind, quantity):
    with pytest.raises(MovementValidationError):
        ledger.validate_quantity(kind, quantity)


@pytest.mark.parametrize("kind", ["entry", "exit", "adjustment"])
@pytest.mark.parametrize("quantity", ["0.005", "1.234", 2.0001])
def test_more_than_two_decimals_is_refused(kind, quantity):
    with pytest.raises(MovementValidationError):
        ledger.validate_quantity(kind, quantity)


def test_trailing_zero_decimals_are_fine():
    assert ledger.validate_quantity("entry", "1.500") == Decimal("1.50")


def test_adjustment_accepts_zero_but_not_negative():
    assert ledger.validate_quantity("adjustment", 0) == Decimal("0.00")
    with pytest.raises(MovementValidationError):
        ledger.validate_quantity("adjustment", "-1")


@pytest.mark.parametrize("value", [None, "abc", True, "NaN", "Infinity"])
def test_quantity_must_be_a_finite_number(value):
    with pytest.raises(MovementValidationError):
        ledger.to_quantity(value)


def test_unknown_movement_type():
    with pytest.raises(MovementValidationError):
        ledger.coerce_movement_type("transfer")
    assert ledger.coerce_movement_type("EXIT") is MovementType.EXIT


# ---------------------------------------------------------------------------
# record_movement
# ---------------------------------------------------------------------------

def test_entry_then_exit_updates_stock(session, admin, make_product):
    product = make_product(stock="10")

    ledger.record_movement(session, product.id, MovementType.ENTRY, 5, admin.id)
    assert _stock(session, product.id) == Decimal("15")

    ledger.record_movement(session, product.id, MovementType.EXIT, 3, admin.id)
    assert _stock(session, product.id) == Decimal("12")


def test_adjustment_sets_absolute_level(session, admin, make_product):
    product = make_product(stock="120")
    ledger.record_movement(session, product.id, "adjustment", 50, admin.id)
    assert _stock(session, product.id) == Decimal("50")


def test_exit_may_drive_stock_negative(session, admin, make_product):
    product = make_product(stock="2")
    ledger.record_movement(session, product.id, "exit", 5, admin.id)
    assert _stock(session, product.id) == Decimal("-3")


def test_smallest_positive_quantity_is_accepted(session, admin, make_product):
    product = make_product()
    ledger.record_movement(session, product.id, "entry", Decimal("0.01"), admin.id)
    assert _stock(session, product.id) == Decimal("0.01")


def test_zero_entry_is_rejected_without_side_effects(session, admin, make_product):
    product = make_product(stock="10")
    with pytest.raises(MovementValidationError):
        ledger.record_movement(session, product.id, "entry", 0, admin.id)
    assert _movement_count(session, product.id) == 1
    assert _stock(session, product.id) == Decimal("10")


def test_extra_precision_is_rejected_without_side_effects(session, admin, make_product):
    product = make_product(stock="10")
    with pytest.raises(MovementValidationError):
        ledger.record_movement(session, product.id, "entry", "1.234", admin.id)
    assert _movement_count(session, product.id) == 1
    assert _stock(session, product.id) == Decimal("10")


def test_unknown_product_is_rejected(session, admin):
    with pytest.raises(ProductNotFoundError) as info:
        ledger.record_movement(session, 9999, "entry", 1, admin.id)
    assert info.value.status_code == 404
    assert not session.in_transaction()
    assert _movement_count(session) == 0


def test_movement_keeps_optional_fields(session, admin, make_product):
    product = make_product()
    movement_id = ledger.record_movement(
        session, product.id, "entry", "7.5", admin.id,
        batch_number="L-1", expiration_date=date(2030, 1, 31), notes="delivery",
    )
    movement = session.get(StockMovement, movement_id)
    assert movement.type is MovementType.ENTRY
    assert movement.quantity == Decimal("7.50")
    assert movement.batch_number == "L-1"
    assert movement.expiration_date == date(2030, 1, 31)
    assert movement.notes == "delivery"
    assert movement.user_id == admin.id
    assert movement.created_at is not None


def test_failed_insert_rolls_back_stock(session, make_product):
    product = make_product(stock="10")

    # No such user: the foreign key fails during the flush
    with pytest.raises(StorageError):
        ledger.record_movement(session, product.id, "entry", 5, 424242)

    assert _movement_count(session, product.id) == 1
    assert _stock(session, product.id) == Decimal("10")


def test_failed_commit_rolls_back_both_rows(session, admin, make_product, monkeypatch):
    product = make_product(stock="10")

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(StorageError):
        ledger.record_movement(session, product.id, "exit", 4, admin.id)
    monkeypatch.undo()

    assert _movement_count(session, product.id) == 1
    assert _stock(session, product.id) == Decimal("10")


def test_uncommitted_movement_belongs_to_caller_transaction(session, admin, make_product):
    product = make_product(stock="10")
    ledger.record_movement(session, product.id, "entry", 5, admin.id, commit=False)
    session.rollback()

    assert _movement_count(session, product.id) == 1
    assert _stock(session, product.id) == Decimal("10")


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------

def test_stored_stock_matches_fold_of_ledger(session, admin, make_product):
    product = make_product()
    for kind, qty in [("entry", 10), ("exit", 3), ("entry", "0.25"), ("adjustment", 40), ("exit", 41)]:
        ledger.record_movement(session, product.id, kind, qty, admin.id)

    assert ledger.recompute_stock(session, product.id) == Decimal("-1.00")
    assert _stock(session, product.id) == Decimal("-1.00")

    result = ledger.reconcile_product(session, product.id)
    assert result.in_sync
    assert result.drift == 0


def test_recompute_is_idempotent(session, admin, make_product):
    product = make_product(stock="8")
    ledger.record_movement(session, product.id, "exit", 2, admin.id)

    first = ledger.recompute_stock(session, product.id)
    second = ledger.recompute_stock(session, product.id)
    assert first == second == Decimal("6.00")
    assert _movement_count(session, product.id) == 2


def test_reconcile_reports_drift(session, admin, make_product):
    product = make_product(stock="5")
    session.query(Product).filter(Product.id == product.id).update({"current_stock": Decimal("9")})
    session.commit()

    result = ledger.reconcile_product(session, product.id)
    assert not result.in_sync
    assert result.stored == Decimal("9.00")
    assert result.computed == Decimal("5.00")
    assert result.drift == Decimal("4.00")


def test_list_movements_filters_and_orders(session, admin, make_product):
    first = make_product(stock="1")
    second = make_product(stock="2")
    ledger.record_movement(session, first.id, "entry", 3, admin.id)
    ledger.record_movement(session, second.id, "exit", 1, admin.id)

    newest_first = ledger.list_movements(session)
    assert [m.id for m in newest_first] == sorted((m.id for m in newest_first), reverse=True)

    only_first = ledger.list_movements(session, product_id=first.id, order="asc")
    assert [m.type for m in only_first] == [MovementType.ADJUSTMENT, MovementType.ENTRY]

    exits = ledger.list_movements(session, kind="exit")
    assert len(exits) == 1
    assert exits[0].product_id == second.id


# ---------------------------------------------------------------------------
# Append-only ledger
# ---------------------------------------------------------------------------

def test_movement_cannot_be_updated(session, make_product):
    product = make_product(stock="3")
    movement = session.query(StockMovement).filter(StockMovement.product_id == product.id).one()

    movement.notes = "rewritten"
    with pytest.raises(ImmutableRecordError):
        session.flush()
    session.rollback()


def test_movement_cannot_be_deleted_alone(session, make_product):
    product = make_product(stock="3")
    movement = session.query(StockMovement).filter(StockMovement.product_id == product.id).one()

    session.delete(movement)
    with pytest.raises(ImmutableRecordError) as info:
        session.flush()
    assert info.value.code == "IMMUTABLE_RECORD"
    session.rollback()
    assert _movement_count(session, product.id) == 1


def test_deleting_product_removes_its_movements(session, admin, make_product):
    doomed_id = make_product(stock="3").id
    kept_id = make_product(stock="4").id
    ledger.record_movement(session, doomed_id, "exit", 1, admin.id)

    session.delete(session.get(Product, doomed_id))
    session.commit()

    assert _movement_count(session, doomed_id) == 0
    assert _movement_count(session, kept_id) == 1
