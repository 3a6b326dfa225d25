from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Literal

UserRole = Literal["admin", "operator", "viewer"]

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    full_name: Optional[str] = Field(None, max_length=200)

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    role: str
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: UserRole
