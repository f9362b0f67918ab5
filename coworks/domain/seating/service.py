"""Seating service - seating type catalogue and seat inventory"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import ensure_branch_access
from ...cache import SEATING_TYPES_KEY_PREFIX, build_key, cache, invalidate_catalogue
from ...models import Admin, Branch, Seat, SeatingType
from ...shared.short_codes import SEATING_TYPE_SHORT_CODES
from .repository import SeatingRepository
from .schemas import (
    SeatCreate,
    SeatingTypeCreate,
    SeatingTypeUpdate,
    SeatUpdate,
    serialize_seat,
    serialize_seating_type,
)

logger = logging.getLogger(__name__)


class SeatingService:
    """Service layer for seating types and seats"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SeatingRepository()

    # ========================================================================
    # SEATING TYPES
    # ========================================================================

    def list_types(self, is_active: Optional[bool] = None) -> list[dict]:
        key = build_key(SEATING_TYPES_KEY_PREFIX, is_active=is_active)
        cached_value = cache.get(key)
        if cached_value is not None:
            return cached_value

        result = [serialize_seating_type(t) for t in self.repo.list_types(self.db, is_active)]
        cache.set(key, result)
        return result

    def resolve_type(self, id_or_code: str) -> SeatingType:
        id_or_code = str(id_or_code).strip()
        if id_or_code.isdigit():
            seating_type = self.repo.get_type(self.db, int(id_or_code))
        else:
            seating_type = self.repo.get_type_by_code(self.db, id_or_code)
        if not seating_type:
            raise HTTPException(status_code=404, detail="Seating type not found")
        return seating_type

    def create_type(self, data: SeatingTypeCreate) -> dict:
        values = data.with_defaults(SEATING_TYPE_SHORT_CODES[data.name])
        if self.repo.type_conflicts(self.db, values["name"], values["short_code"]):
            raise HTTPException(status_code=409, detail="Seating type name or short code already exists")

        seating_type = self.repo.add(self.db, SeatingType(**values))
        invalidate_catalogue()
        logger.info(f"✅ Seating type created: {seating_type.name} ({seating_type.short_code})")
        return serialize_seating_type(seating_type)

    def update_type(self, type_id: int, data: SeatingTypeUpdate) -> dict:
        seating_type = self.resolve_type(str(type_id))
        updates = data.model_dump(exclude_unset=True)
        if updates.get("short_code") and self.repo.type_conflicts(
            self.db, None, updates["short_code"], exclude_id=seating_type.id
        ):
            raise HTTPException(status_code=409, detail="Seating type short code already exists")

        seating_type = self.repo.update(self.db, seating_type, **updates)
        invalidate_catalogue()
        return serialize_seating_type(seating_type)

    def delete_type(self, type_id: int) -> None:
        seating_type = self.resolve_type(str(type_id))
        if self.repo.type_in_use(self.db, seating_type.id):
            raise HTTPException(status_code=409, detail="Seating type is still used by seats")
        self.repo.delete(self.db, seating_type)
        invalidate_catalogue()
        logger.info(f"🗑️ Seating type {type_id} deleted")

    # ========================================================================
    # SEATS
    # ========================================================================

    def list_seats(
        self,
        branch_id: Optional[int] = None,
        branch_code: Optional[str] = None,
        seating_type_id: Optional[int] = None,
        seating_type_code: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[dict]:
        seats = self.repo.list_seats(
            self.db, branch_id, branch_code, seating_type_id, seating_type_code, status
        )
        return [serialize_seat(s) for s in seats]

    def get_seat(self, seat_id: int) -> Seat:
        seat = self.repo.get_seat(self.db, seat_id)
        if not seat:
            raise HTTPException(status_code=404, detail="Seat not found")
        return seat

    def create_seat(self, data: SeatCreate, admin: Admin) -> dict:
        ensure_branch_access(admin, data.branch_id)
        if not self.db.query(Branch.id).filter(Branch.id == data.branch_id).first():
            raise HTTPException(status_code=404, detail="Branch not found")
        seating_type = self.repo.get_type(self.db, data.seating_type_id)
        if not seating_type:
            raise HTTPException(status_code=404, detail="Seating type not found")

        seat_code = (data.seat_code or f"{seating_type.short_code}{data.seat_number}").upper()
        if self.repo.get_seat_by_code(self.db, seat_code):
            raise HTTPException(status_code=409, detail=f"Seat code {seat_code} already exists")

        seat = self.repo.add(
            self.db,
            Seat(
                branch_id=data.branch_id,
                seating_type_id=data.seating_type_id,
                seat_number=data.seat_number,
                seat_code=seat_code,
                price=data.price,
                capacity=data.capacity,
                is_configurable=data.is_configurable,
                availability_status=data.availability_status,
            ),
        )
        invalidate_catalogue()
        logger.info(f"✅ Seat {seat.seat_code} created in branch {seat.branch_id}")
        return serialize_seat(seat)

    def update_seat(self, seat_id: int, data: SeatUpdate, admin: Admin) -> dict:
        seat = self.get_seat(seat_id)
        ensure_branch_access(admin, seat.branch_id)
        seat = self.repo.update(self.db, seat, **data.model_dump(exclude_unset=True))
        logger.info(f"✏️ Seat {seat.seat_code} updated by admin {admin.id}")
        return serialize_seat(seat)

    def delete_seat(self, seat_id: int, admin: Admin) -> None:
        seat = self.get_seat(seat_id)
        ensure_branch_access(admin, seat.branch_id)
        if self.repo.seat_has_bookings(self.db, seat.id):
            raise HTTPException(
                status_code=409,
                detail="Seat has bookings; set it to MAINTENANCE instead of deleting it",
            )
        self.repo.delete_seat(self.db, seat)
        invalidate_catalogue()
        logger.info(f"🗑️ Seat {seat_id} deleted by admin {admin.id}")
