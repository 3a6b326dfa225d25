# packcontrol/routes/suppliers.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from packcontrol.database import get_db, commit_or_raise
from packcontrol.exceptions import SupplierNotFoundError
from packcontrol.models.supplier import Supplier
from packcontrol.models.users import User
from packcontrol.utils.audit import write_log, client_ip
from packcontrol.utils.tokenJWT import get_current_user, admin_only
import packcontrol.schemas.supplier as supplier_schemas

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


def _get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if supplier is None:
        raise SupplierNotFoundError(supplier_id)
    return supplier


@router.get("", response_model=List[supplier_schemas.SupplierOut])
def list_suppliers(
    q: Optional[str] = Query(None, description="Search by name, contact or e-mail"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Supplier)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Supplier.name.ilike(like),
            Supplier.contact_name.ilike(like),
            Supplier.email.ilike(like),
        ))
    return query.order_by(Supplier.name.asc()).all()


@router.get("/{supplier_id}", response_model=supplier_schemas.SupplierOut)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_supplier(db, supplier_id)


@router.post("", response_model=supplier_schemas.SupplierOut, status_code=201)
def create_supplier(
    payload: supplier_schemas.SupplierCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    supplier = Supplier(**payload.model_dump())
    db.add(supplier)
    commit_or_raise(db, "create supplier")
    db.refresh(supplier)
    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": supplier.id})
    return supplier


@router.patch("/{supplier_id}", response_model=supplier_schemas.SupplierOut)
def update_supplier(
    supplier_id: int,
    payload: supplier_schemas.SupplierUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    supplier = _get_supplier(db, supplier_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name", "") is None:
        changes.pop("name")
    for key, value in changes.items():
        setattr(supplier, key, value)
    commit_or_raise(db, "update supplier")
    db.refresh(supplier)
    write_log(db, user_id=current_user.id, action="SUPPLIER_UPDATE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": supplier.id})
    return supplier


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    supplier = _get_supplier(db, supplier_id)
    name = supplier.name
    db.delete(supplier)
    commit_or_raise(db, "delete supplier")
    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": supplier_id})
    return {"detail": f"Supplier '{name}' deleted"}
