"""Account router - customer and admin authentication endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ...auth import (
    get_current_admin,
    get_current_customer,
    get_token_payload,
    require_super_admin,
    security,
)
from ...database import get_db
from ...models import Admin, Customer
from ...rate_limiter import create_rate_limiter
from ...shared.responses import success_response
from .schemas import (
    AdminCreate,
    AdminLogin,
    AdminUpdate,
    ChangePasswordRequest,
    CustomerLogin,
    CustomerProfileUpdate,
    CustomerRegister,
)
from .service import AccountService, admin_payload, customer_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Accounts"])

login_rate_limit = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
register_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


# ============================================================================
# CUSTOMER AUTH
# ============================================================================


@router.post("/auth/register", dependencies=[Depends(register_rate_limit)])
async def register(data: CustomerRegister, service: AccountService = Depends(get_account_service)):
    result = service.register_customer(data)
    return success_response(result, "Registration successful", status_code=201)


@router.post("/auth/login", dependencies=[Depends(login_rate_limit)])
async def login(data: CustomerLogin, service: AccountService = Depends(get_account_service)):
    return success_response(service.login_customer(data), "Login successful")


@router.post("/auth/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    payload: dict = Depends(get_token_payload),
    service: AccountService = Depends(get_account_service),
):
    """Revoke the presented token (customer or admin)"""
    service.logout(credentials.credentials, payload)
    return success_response(None, "Logged out successfully")


@router.get("/auth/profile")
async def get_profile(customer: Customer = Depends(get_current_customer)):
    return success_response(customer_payload(customer), "Profile retrieved")


@router.put("/auth/profile")
async def update_profile(
    data: CustomerProfileUpdate,
    customer: Customer = Depends(get_current_customer),
    service: AccountService = Depends(get_account_service),
):
    return success_response(service.update_profile(customer, data), "Profile updated")


@router.put("/auth/change-password")
async def change_password(
    data: ChangePasswordRequest,
    customer: Customer = Depends(get_current_customer),
    service: AccountService = Depends(get_account_service),
):
    service.change_password(customer, data)
    return success_response(None, "Password changed successfully")


# ============================================================================
# ADMIN AUTH
# ============================================================================


@router.post("/admin/auth/login", dependencies=[Depends(login_rate_limit)])
async def admin_login(data: AdminLogin, service: AccountService = Depends(get_account_service)):
    return success_response(service.login_admin(data), "Login successful")


@router.post("/admin/auth/logout")
async def admin_logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    payload: dict = Depends(get_token_payload),
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    service.logout(credentials.credentials, payload)
    return success_response(None, "Logged out successfully")


@router.get("/admin/auth/profile")
async def admin_profile(admin: Admin = Depends(get_current_admin)):
    return success_response(admin_payload(admin), "Profile retrieved")


@router.post("/admin/auth/refresh")
async def admin_refresh(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    payload: dict = Depends(get_token_payload),
    admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    """Issue a fresh token and revoke the current one"""
    result = service.refresh_admin_token(admin, credentials.credentials, payload)
    return success_response(result, "Token refreshed")


# ============================================================================
# ADMIN MANAGEMENT
# ============================================================================


@router.get("/admin/users")
async def list_admins(
    _admin: Admin = Depends(require_super_admin),
    service: AccountService = Depends(get_account_service),
):
    return success_response(service.list_admins(), "Admins retrieved")


@router.post("/admin/users")
async def create_admin(
    data: AdminCreate,
    _admin: Admin = Depends(require_super_admin),
    service: AccountService = Depends(get_account_service),
):
    return success_response(service.create_admin(data), "Admin created", status_code=201)


@router.put("/admin/users/{admin_id}")
async def update_admin(
    admin_id: int,
    data: AdminUpdate,
    _admin: Admin = Depends(require_super_admin),
    service: AccountService = Depends(get_account_service),
):
    return success_response(service.update_admin(admin_id, data), "Admin updated")


@router.delete("/admin/users/{admin_id}")
async def delete_admin(
    admin_id: int,
    admin: Admin = Depends(require_super_admin),
    service: AccountService = Depends(get_account_service),
):
    service.delete_admin(admin_id, admin)
    return success_response(None, "Admin deleted")


@router.get("/admin/customers")
async def list_customers(
    search: Optional[str] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    return success_response(service.list_customers(search), "Customers retrieved")


__all__ = ["router"]
