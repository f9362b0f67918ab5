"""Account repository - Database operations for customers and admins"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Admin, Branch, Customer


class AccountRepository:
    """Repository for customer and admin database operations"""

    # Customers
    @staticmethod
    def get_customer_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == email).first()

    @staticmethod
    def create_customer(db: Session, **data) -> Customer:
        customer = Customer(**data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def list_customers(db: Session, search: Optional[str] = None) -> list[Customer]:
        query = db.query(Customer)
        if search:
            term = f"%{search}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(term),
                    Customer.email.ilike(term),
                    Customer.company_name.ilike(term),
                )
            )
        return query.order_by(Customer.id.desc()).all()

    # Admins
    @staticmethod
    def get_admin(db: Session, admin_id: int) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.id == admin_id).first()

    @staticmethod
    def find_admin_for_login(
        db: Session, username: Optional[str], email: Optional[str]
    ) -> Optional[Admin]:
        if username:
            return db.query(Admin).filter(Admin.username == username).first()
        return db.query(Admin).filter(Admin.email == email.strip().lower()).first()

    @staticmethod
    def admin_identity_taken(
        db: Session, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None
    ) -> bool:
        conditions = []
        if username:
            conditions.append(Admin.username == username)
        if email:
            conditions.append(Admin.email == email)
        if not conditions:
            return False
        query = db.query(Admin.id).filter(or_(*conditions))
        if exclude_id is not None:
            query = query.filter(Admin.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def list_admins(db: Session) -> list[Admin]:
        return db.query(Admin).order_by(Admin.id).all()

    @staticmethod
    def create_admin(db: Session, **data) -> Admin:
        admin = Admin(**data)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    @staticmethod
    def branch_exists(db: Session, branch_id: int) -> bool:
        return db.query(Branch.id).filter(Branch.id == branch_id).first() is not None

    @staticmethod
    def save(db: Session, instance):
        db.commit()
        db.refresh(instance)
        return instance

    @staticmethod
    def delete(db: Session, instance) -> None:
        db.delete(instance)
        db.commit()
