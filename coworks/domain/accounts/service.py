"""Account service - Registration, login and admin management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import blacklist_token, touch_last_login
from ...models import Admin, Customer
from ...security_utils import (
    create_admin_token,
    create_customer_token,
    hash_password,
    verify_password,
)
from .repository import AccountRepository
from .schemas import (
    AdminCreate,
    AdminLogin,
    AdminResponse,
    AdminUpdate,
    ChangePasswordRequest,
    CustomerLogin,
    CustomerProfileUpdate,
    CustomerRegister,
    CustomerResponse,
)

logger = logging.getLogger(__name__)


def customer_payload(customer: Customer) -> dict:
    return CustomerResponse.model_validate(customer).model_dump()


def admin_payload(admin: Admin) -> dict:
    return AdminResponse.model_validate(admin).model_dump()


class AccountService:
    """Service layer for authentication and account management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository()

    # ========================================================================
    # CUSTOMERS
    # ========================================================================

    def register_customer(self, data: CustomerRegister) -> dict:
        if self.repo.get_customer_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="Email is already registered")

        customer = self.repo.create_customer(
            self.db,
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            phone=data.phone,
            company_name=data.company_name,
        )
        logger.info(f"✅ Customer registered: {customer.id}")
        return {"token": create_customer_token(customer), "customer": customer_payload(customer)}

    def login_customer(self, data: CustomerLogin) -> dict:
        customer = self.repo.get_customer_by_email(self.db, data.email)
        if not customer or not verify_password(data.password, customer.password):
            logger.warning(f"⚠️ Failed customer login for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")
        return {"token": create_customer_token(customer), "customer": customer_payload(customer)}

    def update_profile(self, customer: Customer, data: CustomerProfileUpdate) -> dict:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(customer, field, value)
        self.repo.save(self.db, customer)
        return customer_payload(customer)

    def change_password(self, customer: Customer, data: ChangePasswordRequest) -> None:
        if not verify_password(data.current_password, customer.password):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        customer.password = hash_password(data.new_password)
        self.repo.save(self.db, customer)
        logger.info(f"🔑 Password changed for customer {customer.id}")

    def list_customers(self, search: Optional[str] = None) -> list[dict]:
        return [customer_payload(c) for c in self.repo.list_customers(self.db, search)]

    def logout(self, token: str, payload: dict) -> None:
        blacklist_token(self.db, token, payload)

    # ========================================================================
    # ADMINS
    # ========================================================================

    def login_admin(self, data: AdminLogin) -> dict:
        admin = self.repo.find_admin_for_login(self.db, data.username, data.email)
        if not admin or not verify_password(data.password, admin.password):
            logger.warning(f"⚠️ Failed admin login for {data.username or data.email}")
            raise HTTPException(status_code=401, detail="Invalid credentials")
        if not admin.is_active:
            raise HTTPException(status_code=403, detail="Admin account is deactivated")

        touch_last_login(self.db, admin)
        logger.info(f"✅ Admin {admin.username} logged in")
        return {"token": create_admin_token(admin), "admin": admin_payload(admin)}

    def refresh_admin_token(self, admin: Admin, token: str, payload: dict) -> dict:
        new_token = create_admin_token(admin)
        blacklist_token(self.db, token, payload)
        return {"token": new_token, "admin": admin_payload(admin)}

    def get_admin(self, admin_id: int) -> Admin:
        admin = self.repo.get_admin(self.db, admin_id)
        if not admin:
            raise HTTPException(status_code=404, detail="Admin not found")
        return admin

    def list_admins(self) -> list[dict]:
        return [admin_payload(a) for a in self.repo.list_admins(self.db)]

    def create_admin(self, data: AdminCreate) -> dict:
        if self.repo.admin_identity_taken(self.db, data.username, data.email):
            raise HTTPException(status_code=409, detail="Username or email already exists")
        if data.branch_id and not self.repo.branch_exists(self.db, data.branch_id):
            raise HTTPException(status_code=404, detail="Branch not found")

        admin = self.repo.create_admin(
            self.db,
            username=data.username,
            email=data.email,
            password=hash_password(data.password),
            name=data.name,
            role=data.role,
            branch_id=data.branch_id,
            permissions=data.permissions,
        )
        logger.info(f"✅ Admin created: {admin.username} ({admin.role})")
        return admin_payload(admin)

    def update_admin(self, admin_id: int, data: AdminUpdate) -> dict:
        admin = self.get_admin(admin_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("email") and self.repo.admin_identity_taken(
            self.db, None, updates["email"], exclude_id=admin.id
        ):
            raise HTTPException(status_code=409, detail="Email already exists")
        if updates.get("branch_id") and not self.repo.branch_exists(self.db, updates["branch_id"]):
            raise HTTPException(status_code=404, detail="Branch not found")

        if updates.get("password"):
            updates["password"] = hash_password(updates["password"])
        for field, value in updates.items():
            if value is not None:
                setattr(admin, field, value)
        self.repo.save(self.db, admin)
        return admin_payload(admin)

    def delete_admin(self, admin_id: int, current_admin: Admin) -> None:
        if admin_id == current_admin.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")
        admin = self.get_admin(admin_id)
        self.repo.delete(self.db, admin)
        logger.info(f"🗑️ Admin {admin_id} deleted by {current_admin.id}")
