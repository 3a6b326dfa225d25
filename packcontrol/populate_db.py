"""Seed a development database with a demo catalog and stock history.

Run with ``python -m packcontrol.populate_db``. Stock levels are produced by
recording movements through the ledger, never by writing current_stock.
"""
import os
import random
from decimal import Decimal

from packcontrol.database import SessionLocal, init_db
from packcontrol.db_guards import register_ledger_guards
from packcontrol.models.category import Category
from packcontrol.models.product import Product, ProductUnit
from packcontrol.models.stock import MovementType
from packcontrol.models.supplier import Supplier
from packcontrol.models.users import User, ROLE_ADMIN
from packcontrol.services import ledger
from packcontrol.utils.hashing import get_password_hash

# Configuration
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
MOVEMENTS_PER_PRODUCT = 8
RANDOM_SEED = 42
# End Configuration

CATEGORIES = [
    ("Packaging", "Boxes, bags and wrapping"),
    ("Cleaning", "Cleaning products and supplies"),
    ("Office", "Office consumables"),
]

SUPPLIERS = [
    {"name": "Acme Packaging", "contact_name": "Dana Lee", "email": "sales@acme-pack.example", "phone": "555-0101"},
    {"name": "CleanCo", "contact_name": "Sam Ortiz", "email": "orders@cleanco.example", "phone": "555-0144"},
]

# code, name, category index, supplier index, unit, minimum, price, opening stock
PRODUCTS = [
    ("BOX-S", "Cardboard box S", 0, 0, ProductUnit.UN, "50", "0.80", "400"),
    ("BOX-L", "Cardboard box L", 0, 0, ProductUnit.UN, "30", "1.90", "120"),
    ("TAPE-48", "Packing tape 48mm", 0, 0, ProductUnit.PC, "20", "2.50", "60"),
    ("DETERG-5L", "Detergent 5L", 1, 1, ProductUnit.L, "10", "12.00", "25"),
    ("GLOVES-M", "Nitrile gloves M", 1, 1, ProductUnit.CX, "5", "9.90", "4"),
    ("PAPER-A4", "Paper A4 500 sheets", 2, None, ProductUnit.CX, "10", "5.40", "35"),
]


def _get_or_create_admin(session) -> User:
    admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin:
        return admin
    admin = User(
        email=ADMIN_EMAIL,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role=ROLE_ADMIN,
        full_name="Administrator",
    )
    session.add(admin)
    session.commit()
    print(f"Created admin user {ADMIN_EMAIL}")
    return admin


def load_all_data():
    """Insert the demo catalog and a random movement history."""
    rng = random.Random(RANDOM_SEED)
    session = SessionLocal()
    try:
        admin = _get_or_create_admin(session)

        if session.query(Product).count():
            print("Products already present, nothing to seed.")
            return

        categories = [Category(name=n, description=d) for n, d in CATEGORIES]
        suppliers = [Supplier(**s) for s in SUPPLIERS]
        session.add_all(categories + suppliers)
        session.commit()

        print(f"Inserting {len(PRODUCTS)} products...")
        for code, name, cat_idx, sup_idx, unit, minimum, price, opening in PRODUCTS:
            product = Product(
                code=code,
                name=name,
                category_id=categories[cat_idx].id,
                supplier_id=suppliers[sup_idx].id if sup_idx is not None else None,
                unit=unit,
                minimum_stock=Decimal(minimum),
                price=Decimal(price),
                current_stock=0,
            )
            session.add(product)
            session.commit()

            ledger.record_movement(
                session, product.id, MovementType.ADJUSTMENT, Decimal(opening), admin.id,
                notes="Opening balance",
            )
            for _ in range(MOVEMENTS_PER_PRODUCT):
                kind = rng.choice([MovementType.ENTRY, MovementType.EXIT])
                quantity = Decimal(rng.randint(1, 15))
                ledger.record_movement(
                    session, product.id, kind, quantity, admin.id,
                    batch_number=f"L{rng.randint(1000, 9999)}" if kind is MovementType.ENTRY else None,
                )

        print("Checking ledger consistency...")
        for product in session.query(Product).all():
            check = ledger.reconcile_product(session, product.id)
            print(f"  {product.code}: {check.stored} ({'ok' if check.in_sync else 'DRIFT'})")
    finally:
        session.close()


def populate_database():
    """Main execution function to populate database."""
    init_db()
    register_ledger_guards()
    load_all_data()


if __name__ == "__main__":
    populate_database()
