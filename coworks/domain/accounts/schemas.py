"""Account domain schemas - Pydantic models for customers and admins"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import AdminRole
from ...shared.validators import validate_email, validate_password, validate_phone


class CustomerRegister(BaseModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None
    company_name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class CustomerLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class CustomerProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    profile_picture: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    company_name: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminLogin(BaseModel):
    """Admins sign in with either their username or their email"""

    username: Optional[str] = None
    email: Optional[str] = None
    password: str

    @model_validator(mode="after")
    def check_identifier(self):
        if not self.username and not self.email:
            raise ValueError("Username or email is required")
        return self


class AdminCreate(BaseModel):
    username: str
    email: str
    password: str
    name: str
    role: str = AdminRole.BRANCH_ADMIN
    branch_id: Optional[int] = None
    permissions: Optional[dict] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        if v not in AdminRole.ALL:
            raise ValueError(f"Role must be one of: {', '.join(AdminRole.ALL)}")
        return v

    @model_validator(mode="after")
    def check_branch(self):
        if self.role == AdminRole.BRANCH_ADMIN and not self.branch_id:
            raise ValueError("branch_id is required for branch admins")
        return self


class AdminUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    branch_id: Optional[int] = None
    is_active: Optional[bool] = None
    permissions: Optional[dict] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if v is None:
            return v
        return validate_password(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        if v is not None and v not in AdminRole.ALL:
            raise ValueError(f"Role must be one of: {', '.join(AdminRole.ALL)}")
        return v


class AdminResponse(BaseModel):
    id: int
    username: str
    email: str
    name: str
    role: str
    branch_id: Optional[int] = None
    is_active: bool
    last_login: Optional[datetime] = None
    permissions: Optional[dict] = None

    class Config:
        from_attributes = True
