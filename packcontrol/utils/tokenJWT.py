# packcontrol/utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from packcontrol.config import settings
from packcontrol.database import get_db
from packcontrol.exceptions import UnauthorizedError
from packcontrol.models.users import User, ROLE_ADMIN, ROLE_OPERATOR

# Authorization scheme
bearer_scheme = HTTPBearer()

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        email: str = payload.get("sub")
        # Ensure email is present in the token payload
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise credentials_exception
    return user

# Dependency factory for role-based access control
def role_required(*allowed_roles):
    def _checker(current_user: User = Depends(get_current_user)):
        role = (current_user.role or "").lower()
        if allowed_roles and role not in allowed_roles:
            raise UnauthorizedError(
                f"Role '{role}' is not allowed to perform this action", role=role
            )
        return current_user
    return _checker

# Shorthands for the role matrix
stock_writer = role_required(ROLE_ADMIN, ROLE_OPERATOR)
admin_only = role_required(ROLE_ADMIN)
