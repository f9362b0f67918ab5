"""Periodic housekeeping for bookings and revoked tokens"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import BlacklistedToken, BookingStatus
from .repository import BookingRepository
from .service import booking_type_of, finish_booking

logger = logging.getLogger(__name__)


def cleanup_expired_bookings(db: Session, now: datetime = None) -> dict:
    """
    Close bookings whose end time has passed.

    CONFIRMED bookings become COMPLETED, PENDING ones (never paid) become
    CANCELLED. Their time slots are freed in the same transaction.
    """
    now = now or datetime.utcnow()
    counts = {"completed": 0, "cancelled": 0}

    try:
        for booking in BookingRepository.ended_bookings(db, now):
            if booking.status == BookingStatus.CONFIRMED:
                finish_booking(db, booking, BookingStatus.COMPLETED)
                counts["completed"] += 1
            else:
                finish_booking(db, booking, BookingStatus.CANCELLED)
                counts["cancelled"] += 1
            logger.debug(f"{booking_type_of(booking)} booking {booking.id} -> {booking.status}")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Expired booking cleanup failed: {e}")
        raise

    if counts["completed"] or counts["cancelled"]:
        logger.info(
            f"🗑️ Closed expired bookings: {counts['completed']} completed, {counts['cancelled']} cancelled"
        )
    return counts


def purge_blacklisted_tokens(db: Session, now: datetime = None) -> int:
    """Delete revoked tokens that have expired anyway"""
    now = now or datetime.utcnow()
    try:
        deleted = (
            db.query(BlacklistedToken)
            .filter(BlacklistedToken.expires_at < now)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Token purge failed: {e}")
        raise

    if deleted:
        logger.info(f"🗑️ Purged {deleted} expired blacklisted tokens")
    return deleted
