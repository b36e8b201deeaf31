from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import date, datetime

from models.users import AppRole, FeaturePermission

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    date_of_birth: Optional[date] = None
    job_function: Optional[str] = None

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    full_name: str
    role: str
    permissions: List[str] = []
    is_active: bool
    is_approved: bool
    date_of_birth: Optional[date] = None
    job_function: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Limited profile other staff may see
class ProfileLimited(BaseModel):
    id: int
    full_name: str
    role: str
    job_function: Optional[str] = None

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for profile edits by the account owner
class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    job_function: Optional[str] = None
    address: Optional[str] = None
    contract: Optional[str] = None

# Schema for administrative role updates (admin goes through password verification)
class RoleUpdate(BaseModel):
    role: AppRole

class PermissionUpdate(BaseModel):
    permission: FeaturePermission
    granted: bool

class ActiveUpdate(BaseModel):
    is_active: bool

class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

class PersonalOverview(BaseModel):
    completed_repairs: int
    total_points: int
    diagnoses: int
    bikes_in_progress: int
