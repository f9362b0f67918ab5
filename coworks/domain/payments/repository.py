"""Payment repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Payment


class PaymentRepository:
    """Repository for payment operations"""

    @staticmethod
    def get_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    def get_by_order_id(db: Session, order_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.order_id == order_id).first()

    @staticmethod
    def list_payments(
        db: Session,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        booking_type: Optional[str] = None,
    ) -> list[Payment]:
        query = db.query(Payment)
        if customer_id is not None:
            query = query.filter(Payment.customer_id == customer_id)
        if status:
            query = query.filter(Payment.payment_status == status)
        if booking_type:
            query = query.filter(Payment.booking_type == booking_type)
        return query.order_by(Payment.id.desc()).all()

    @staticmethod
    def create(db: Session, payment: Payment) -> Payment:
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment
