from datetime import time

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


# ============================================================================
# STATUS VALUES
# ============================================================================


class SeatingTypeName:
    HOT_DESK = "HOT_DESK"
    DEDICATED_DESK = "DEDICATED_DESK"
    CUBICLE = "CUBICLE"
    MEETING_ROOM = "MEETING_ROOM"
    DAILY_PASS = "DAILY_PASS"

    ALL = (HOT_DESK, DEDICATED_DESK, CUBICLE, MEETING_ROOM, DAILY_PASS)
    # Types booked by the month
    MONTHLY = (HOT_DESK, DEDICATED_DESK, CUBICLE)


class SeatStatus:
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    MAINTENANCE = "MAINTENANCE"

    ALL = (AVAILABLE, BOOKED, MAINTENANCE)


class BookingStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    ALL = (PENDING, CONFIRMED, CANCELLED, COMPLETED)
    # Statuses that hold a seat for their time range
    ACTIVE = (PENDING, CONFIRMED)
    FINISHED = (CANCELLED, COMPLETED)


class BookingType:
    SEAT = "seat"
    MEETING = "meeting"

    ALL = (SEAT, MEETING)


class PaymentStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

    ALL = (PENDING, COMPLETED, FAILED, REFUNDED)


class PaymentMethod:
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    UPI = "UPI"
    NET_BANKING = "NET_BANKING"
    WALLET = "WALLET"
    CASH = "CASH"

    ALL = (CREDIT_CARD, DEBIT_CARD, UPI, NET_BANKING, WALLET, CASH)


class AdminRole:
    BRANCH_ADMIN = "branch_admin"
    SUPER_ADMIN = "super_admin"

    ALL = (BRANCH_ADMIN, SUPER_ADMIN)


class TicketStatus:
    NEW = "new"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    REOPENED = "reopened"

    ALL = (NEW, ASSIGNED, IN_PROGRESS, CLOSED, REOPENED)


class TicketCategory:
    ALL = (
        "internet_issue",
        "power_outage",
        "seat_issue",
        "booking_problem",
        "meeting_room_issue",
        "cleanliness",
        "payment_issue",
        "other",
    )


class MessageSender:
    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


# ============================================================================
# INVENTORY
# ============================================================================


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    location = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    cost_multiplier = Column(Float, nullable=False, default=1.0)
    opening_time = Column(Time, nullable=False, default=time(8, 0))
    closing_time = Column(Time, nullable=False, default=time(22, 0))
    city = Column(String(100), nullable=False, default="Bengaluru")
    state = Column(String(100), nullable=False, default="Karnataka")
    country = Column(String(100), nullable=False, default="India")
    postal_code = Column(String(20), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    images = Column(JSON, nullable=True)  # list of image URLs
    amenities = Column(JSON, nullable=True)  # list of amenity names
    short_code = Column(String(20), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    seats = relationship("Seat", back_populates="branch")
    admins = relationship("Admin", back_populates="branch")


class SeatingType(Base):
    __tablename__ = "seating_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)  # SeatingTypeName
    description = Column(Text, nullable=True)
    hourly_rate = Column(Float, nullable=False, default=0.0)
    daily_rate = Column(Float, nullable=True)
    weekly_rate = Column(Float, nullable=True)
    monthly_rate = Column(Float, nullable=True)
    base_price = Column(Float, nullable=True)
    is_hourly = Column(Boolean, nullable=False, default=False)
    is_meeting_room = Column(Boolean, nullable=False, default=False)
    min_booking_duration = Column(Integer, nullable=False, default=2)
    min_seats = Column(Integer, nullable=False, default=1)
    short_code = Column(String(20), unique=True, index=True, nullable=False)
    capacity_options = Column(JSON, nullable=True)  # e.g. [4, 6, 8]
    quantity_options = Column(JSON, nullable=True)  # e.g. [1, 2, 3]
    cost_multiplier = Column(JSON, nullable=True)  # {"quantity": multiplier}
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    seats = relationship("Seat", back_populates="seating_type")


class Seat(Base):
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    seating_type_id = Column(Integer, ForeignKey("seating_types.id"), nullable=False, index=True)
    seat_number = Column(String(50), nullable=False)
    seat_code = Column(String(50), unique=True, index=True, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    capacity = Column(Integer, nullable=True)
    is_configurable = Column(Boolean, nullable=False, default=False)
    availability_status = Column(String(20), nullable=False, default=SeatStatus.AVAILABLE)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    branch = relationship("Branch", back_populates="seats")
    seating_type = relationship("SeatingType", back_populates="seats")


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    # Seat or meeting booking id; the slot is only reserved while is_available is False
    booking_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    seat = relationship("Seat")


class MaintenanceBlock(Base):
    __tablename__ = "maintenance_blocks"

    id = Column(Integer, primary_key=True, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    reason = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    seat = relationship("Seat")


# ============================================================================
# ACCOUNTS
# ============================================================================


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    profile_picture = Column(String(500), nullable=True)
    company_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Admin(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    name = Column(String(255), nullable=False)
    role = Column(String(30), nullable=False, default=AdminRole.BRANCH_ADMIN)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    permissions = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    branch = relationship("Branch", back_populates="admins")


class BlacklistedToken(Base):
    __tablename__ = "blacklisted_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(1024), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    blacklisted_at = Column(DateTime, server_default=func.now())


# ============================================================================
# BOOKINGS AND PAYMENTS
# ============================================================================


class SeatBooking(Base):
    __tablename__ = "seat_bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    total_price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    seat = relationship("Seat")


class MeetingBooking(Base):
    __tablename__ = "meeting_bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    meeting_room_id = Column(Integer, ForeignKey("seats.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    num_participants = Column(Integer, nullable=False, default=1)
    amenities = Column(JSON, nullable=True)
    total_price = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    meeting_room = relationship("Seat")

    @property
    def seat_id(self):
        return self.meeting_room_id

    @property
    def seat(self):
        return self.meeting_room

    @property
    def quantity(self):
        return 1


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, nullable=False, index=True)
    booking_type = Column(String(20), nullable=False)  # BookingType
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(10), nullable=False, default="INR")
    payment_method = Column(String(30), nullable=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    order_id = Column(String(100), unique=True, nullable=True, index=True)
    transaction_id = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


# ============================================================================
# SUPPORT
# ============================================================================


class SupportTicket(Base):
    __tablename__ = "support_tickets"
    __table_args__ = (UniqueConstraint("ticket_number", name="uq_support_ticket_number"),)

    id = Column(Integer, primary_key=True, index=True)
    ticket_number = Column(String(30), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    branch_code = Column(String(20), nullable=True)
    seating_type_id = Column(Integer, ForeignKey("seating_types.id"), nullable=True)
    seating_type_code = Column(String(20), nullable=True)
    booking_id = Column(Integer, nullable=True)
    booking_type = Column(String(20), nullable=True)
    title = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=TicketStatus.NEW, index=True)
    assigned_to = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime, nullable=True)
    reopened_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    branch = relationship("Branch")
    messages = relationship(
        "TicketMessage",
        back_populates="ticket",
        order_by="TicketMessage.id",
        cascade="all, delete-orphan",
    )


class TicketMessage(Base):
    __tablename__ = "ticket_messages"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    sender_type = Column(String(20), nullable=False)  # MessageSender
    sender_id = Column(Integer, nullable=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    ticket = relationship("SupportTicket", back_populates="messages")
