# packcontrol/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional, Literal
from pydantic import BaseModel
from sqlalchemy.orm import Session

from packcontrol.database import get_db
from packcontrol.exceptions import UserNotFoundError
from packcontrol.models.users import User
from packcontrol.schemas.user import RoleUpdate, UserResponse
from packcontrol.utils.audit import write_log, client_ip
from packcontrol.utils.tokenJWT import admin_only

router = APIRouter(tags=["Admin"])

# Schema for paginated user list response
class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail or name"),
    role: Optional[str] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "role", "full_name"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter(User.email.ilike(like) | User.full_name.ilike(like))
    if role:
        query = query.filter(User.role == role.lower())

    sort_map = {
        "id": User.id,
        "email": User.email,
        "role": User.role,
        "full_name": User.full_name,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": users,
        "total": total,
        "page": page,
        "page_size": page_size,
    }


# Update user role (Admin only)
@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFoundError(user_id)

    # An admin demoting themselves could leave nobody able to manage roles
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    old_role = user.role
    user.role = new_role.role
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="ROLE_UPDATE", resource="users",
              status="SUCCESS", ip=client_ip(request),
              meta={"target_id": user.id, "from": old_role, "to": user.role})
    return user
