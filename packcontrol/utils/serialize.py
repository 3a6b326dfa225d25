# packcontrol/utils/serialize.py
from packcontrol.models.product import Product
from packcontrol.models.stock import StockMovement
from packcontrol.schemas.product import ProductOut
from packcontrol.schemas.stock import StockMovementResponse


def product_out(p: Product) -> ProductOut:
    fields = list(ProductOut.model_fields.keys())
    data = {f: getattr(p, f) for f in fields if hasattr(p, f)}
    data["category_name"] = p.category.name if p.category else None
    data["supplier_name"] = p.supplier.name if p.supplier else None
    return ProductOut.model_validate(data)


def movement_out(m: StockMovement) -> StockMovementResponse:
    return StockMovementResponse(
        id=m.id,
        created_at=m.created_at,
        product_id=m.product_id,
        product_name=m.product.name if m.product else None,
        product_code=m.product.code if m.product else None,
        type=m.type,
        quantity=m.quantity,
        batch_number=m.batch_number,
        expiration_date=m.expiration_date,
        notes=m.notes,
        user_id=m.user_id,
        user_email=m.user.email if m.user else None,
    )
