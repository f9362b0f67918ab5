"""Branch repository - Database operations for branches"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Branch, Seat, SeatingType


class BranchRepository:
    """Repository for branch database operations"""

    @staticmethod
    def list_branches(
        db: Session,
        city: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[Branch]:
        query = db.query(Branch)
        if city:
            query = query.filter(func.lower(Branch.city) == city.lower())
        if is_active is not None:
            query = query.filter(Branch.is_active == is_active)
        if search:
            term = f"%{search}%"
            query = query.filter(
                or_(Branch.name.ilike(term), Branch.location.ilike(term), Branch.address.ilike(term))
            )
        return query.order_by(Branch.name).all()

    @staticmethod
    def get_by_id(db: Session, branch_id: int) -> Optional[Branch]:
        return db.query(Branch).filter(Branch.id == branch_id).first()

    @staticmethod
    def get_by_short_code(db: Session, short_code: str) -> Optional[Branch]:
        return db.query(Branch).filter(Branch.short_code == short_code.lower()).first()

    @staticmethod
    def short_code_exists(db: Session, short_code: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Branch.id).filter(Branch.short_code == short_code)
        if exclude_id is not None:
            query = query.filter(Branch.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def seat_counts(db: Session, branch_ids: list[int]) -> dict[int, dict[str, int]]:
        """{branch_id: {seating_type_name: seat_count}}"""
        if not branch_ids:
            return {}
        rows = (
            db.query(Seat.branch_id, SeatingType.name, func.count(Seat.id))
            .join(SeatingType, Seat.seating_type_id == SeatingType.id)
            .filter(Seat.branch_id.in_(branch_ids))
            .group_by(Seat.branch_id, SeatingType.name)
            .all()
        )
        counts: dict[int, dict[str, int]] = {}
        for branch_id, type_name, count in rows:
            counts.setdefault(branch_id, {})[type_name] = count
        return counts

    @staticmethod
    def list_seats(
        db: Session,
        branch_id: int,
        seating_type_code: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Seat]:
        query = db.query(Seat).filter(Seat.branch_id == branch_id)
        if seating_type_code:
            query = query.join(SeatingType, Seat.seating_type_id == SeatingType.id).filter(
                SeatingType.short_code == seating_type_code.lower()
            )
        if status:
            query = query.filter(Seat.availability_status == status.upper())
        return query.order_by(Seat.seat_code).all()

    @staticmethod
    def has_seats(db: Session, branch_id: int) -> bool:
        return db.query(Seat.id).filter(Seat.branch_id == branch_id).first() is not None

    @staticmethod
    def create(db: Session, **data) -> Branch:
        branch = Branch(**data)
        db.add(branch)
        db.commit()
        db.refresh(branch)
        return branch

    @staticmethod
    def update(db: Session, branch: Branch, **updates) -> Branch:
        for key, value in updates.items():
            if value is not None and hasattr(branch, key):
                setattr(branch, key, value)
        db.commit()
        db.refresh(branch)
        return branch

    @staticmethod
    def delete(db: Session, branch: Branch) -> None:
        db.delete(branch)
        db.commit()
