# packcontrol/routes/categories.py
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from packcontrol.database import get_db, commit_or_raise
from packcontrol.exceptions import CategoryNotFoundError
from packcontrol.models.category import Category
from packcontrol.models.users import User
from packcontrol.utils.audit import write_log, client_ip
from packcontrol.utils.tokenJWT import get_current_user, admin_only
import packcontrol.schemas.category as category_schemas

router = APIRouter(prefix="/categories", tags=["Categories"])


def _get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


@router.get("", response_model=List[category_schemas.CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.get("/{category_id}", response_model=category_schemas.CategoryOut)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_category(db, category_id)


@router.post("", response_model=category_schemas.CategoryOut, status_code=201)
def create_category(
    payload: category_schemas.CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = Category(**payload.model_dump())
    db.add(category)
    commit_or_raise(db, "create category")
    db.refresh(category)
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id})
    return category


@router.patch("/{category_id}", response_model=category_schemas.CategoryOut)
def update_category(
    category_id: int,
    payload: category_schemas.CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _get_category(db, category_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name", "") is None:
        changes.pop("name")
    for key, value in changes.items():
        setattr(category, key, value)
    commit_or_raise(db, "update category")
    db.refresh(category)
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id})
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _get_category(db, category_id)
    name = category.name
    # Products keep existing without a category (ON DELETE SET NULL)
    db.delete(category)
    commit_or_raise(db, "delete category")
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category_id})
    return {"detail": f"Category '{name}' deleted"}
