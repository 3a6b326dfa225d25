"""
ORM-level guards for the stock ledger.

Stock movements are append-only. Two listeners enforce that on every
session flush:

- ``before_update`` on StockMovement rejects any UPDATE.
- ``before_flush`` on Session rejects deleting a movement unless its
  product is being deleted in the same flush (the product cascade).

Raw SQL bypasses these; the API never issues any against stock_movements.
"""

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from packcontrol.exceptions import ImmutableRecordError
from packcontrol.models.product import Product
from packcontrol.models.stock import StockMovement

logger = logging.getLogger(__name__)

_registered = False


def _reject_movement_update(mapper, connection, target):
    logger.error("Blocked UPDATE of stock movement %s", target.id)
    raise ImmutableRecordError("StockMovement", target.id, "UPDATE")


def _reject_orphan_movement_delete(session, flush_context, instances):
    deleted_products = {obj.id for obj in session.deleted if isinstance(obj, Product)}
    for obj in list(session.deleted):
        if isinstance(obj, StockMovement) and obj.product_id not in deleted_products:
            logger.error("Blocked DELETE of stock movement %s", obj.id)
            raise ImmutableRecordError("StockMovement", obj.id, "DELETE")


def register_ledger_guards():
    """Install the listeners once per process."""
    global _registered
    if _registered:
        return
    event.listen(StockMovement, "before_update", _reject_movement_update)
    event.listen(Session, "before_flush", _reject_orphan_movement_delete)
    _registered = True


def unregister_ledger_guards():
    global _registered
    if not _registered:
        return
    event.remove(StockMovement, "before_update", _reject_movement_update)
    event.remove(Session, "before_flush", _reject_orphan_movement_delete)
    _registered = False
