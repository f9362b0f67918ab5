"""Branch service - Business logic for branch management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import ensure_branch_access
from ...cache import BRANCHES_KEY_PREFIX, build_key, cache, invalidate_catalogue
from ...models import Admin, Branch
from ...shared.short_codes import branch_short_code_for, make_unique
from ..seating.schemas import serialize_seat
from .repository import BranchRepository
from .schemas import BranchCreate, BranchResponse, BranchUpdate

logger = logging.getLogger(__name__)


def serialize_branch(branch: Branch, seat_counts: Optional[dict] = None) -> dict:
    data = BranchResponse.model_validate(branch).model_dump()
    if seat_counts is not None:
        data["seat_counts"] = seat_counts
        data["total_seats"] = sum(seat_counts.values())
    return data


class BranchService:
    """Service layer for branch business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BranchRepository()

    def resolve(self, id_or_code: str) -> Branch:
        """Look a branch up by numeric id or short code"""
        id_or_code = str(id_or_code).strip()
        if id_or_code.isdigit():
            branch = self.repo.get_by_id(self.db, int(id_or_code))
        else:
            branch = self.repo.get_by_short_code(self.db, id_or_code)
        if not branch:
            raise HTTPException(status_code=404, detail="Branch not found")
        return branch

    def list_branches(
        self, city: Optional[str] = None, is_active: Optional[bool] = None, search: Optional[str] = None
    ) -> list[dict]:
        key = build_key(BRANCHES_KEY_PREFIX, city=city, is_active=is_active, search=search)
        cached_value = cache.get(key)
        if cached_value is not None:
            return cached_value

        branches = self.repo.list_branches(self.db, city, is_active, search)
        counts = self.repo.seat_counts(self.db, [b.id for b in branches])
        result = [serialize_branch(b, counts.get(b.id, {})) for b in branches]
        cache.set(key, result)
        return result

    def get_branch(self, id_or_code: str) -> dict:
        branch = self.resolve(id_or_code)
        counts = self.repo.seat_counts(self.db, [branch.id])
        return serialize_branch(branch, counts.get(branch.id, {}))

    def list_seats(
        self, id_or_code: str, seating_type_code: Optional[str] = None, status: Optional[str] = None
    ) -> dict:
        branch = self.resolve(id_or_code)
        seats = self.repo.list_seats(self.db, branch.id, seating_type_code, status)
        return {
            "branch": serialize_branch(branch),
            "seats": [serialize_seat(s) for s in seats],
            "total": len(seats),
        }

    def create_branch(self, data: BranchCreate) -> dict:
        payload = data.model_dump()
        if payload.get("short_code"):
            if self.repo.short_code_exists(self.db, payload["short_code"]):
                raise HTTPException(status_code=409, detail="Branch short code already exists")
        else:
            payload["short_code"] = make_unique(
                branch_short_code_for(data.name),
                lambda code: self.repo.short_code_exists(self.db, code),
            )

        branch = self.repo.create(self.db, **payload)
        invalidate_catalogue()
        logger.info(f"✅ Branch created: {branch.name} ({branch.short_code})")
        return serialize_branch(branch, {})

    def update_branch(self, branch_id: int, data: BranchUpdate, admin: Admin) -> dict:
        branch = self.resolve(str(branch_id))
        ensure_branch_access(admin, branch.id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("short_code") and self.repo.short_code_exists(
            self.db, updates["short_code"], exclude_id=branch.id
        ):
            raise HTTPException(status_code=409, detail="Branch short code already exists")
        if updates.get("cost_multiplier") is not None and updates["cost_multiplier"] <= 0:
            raise HTTPException(status_code=400, detail="cost_multiplier must be positive")

        opening = updates.get("opening_time") or branch.opening_time
        closing = updates.get("closing_time") or branch.closing_time
        if opening >= closing:
            raise HTTPException(status_code=400, detail="opening_time must be before closing_time")

        branch = self.repo.update(self.db, branch, **updates)
        invalidate_catalogue()
        logger.info(f"✏️ Branch {branch.id} updated by admin {admin.id}")
        return serialize_branch(branch)

    def delete_branch(self, branch_id: int) -> None:
        branch = self.resolve(str(branch_id))
        if self.repo.has_seats(self.db, branch.id):
            raise HTTPException(
                status_code=409,
                detail="Branch still has seats; remove them or deactivate the branch instead",
            )
        self.repo.delete(self.db, branch)
        invalidate_catalogue()
        logger.info(f"🗑️ Branch {branch_id} deleted")
