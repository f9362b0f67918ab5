import os

# Settings are read at import time, so they must be in place before coworks is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-for-jwt-signing"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "rzp_webhook_secret"

from datetime import datetime, time, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coworks.database import Base, get_db  # noqa: E402
from coworks.main import app  # noqa: E402
from coworks.models import (  # noqa: E402
    Admin,
    AdminRole,
    Branch,
    Customer,
    Seat,
    SeatingType,
    SeatingTypeName,
)
from coworks.security_utils import (  # noqa: E402
    create_admin_token,
    create_customer_token,
    hash_password,
)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "password123"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def future_day(days: int = 7) -> datetime:
    """Midnight UTC a number of days from today"""
    return datetime.combine(datetime.utcnow().date() + timedelta(days=days), time.min)


# ============================================================================
# INVENTORY
# ============================================================================


@pytest.fixture
def branch(db):
    branch = Branch(
        name="Naagarbhaavi",
        address="1 Ring Road, Naagarbhaavi",
        location="Bengaluru",
        short_code="ngb",
        opening_time=time(8, 0),
        closing_time=time(18, 0),
        cost_multiplier=1.0,
    )
    db.add(branch)
    db.commit()
    db.refresh(branch)
    return branch


@pytest.fixture
def other_branch(db):
    branch = Branch(
        name="Whitefield",
        address="2 ITPL Main Road",
        location="Bengaluru",
        short_code="wtf",
        opening_time=time(9, 0),
        closing_time=time(17, 0),
    )
    db.add(branch)
    db.commit()
    db.refresh(branch)
    return branch


@pytest.fixture
def hot_desk_type(db):
    seating_type = SeatingType(
        name=SeatingTypeName.HOT_DESK,
        short_code="hot",
        hourly_rate=100.0,
        daily_rate=500.0,
        monthly_rate=3000.0,
        min_booking_duration=1,
        quantity_options=[1, 2, 3],
        cost_multiplier={"1": 1.0, "2": 0.95, "3": 0.9},
    )
    db.add(seating_type)
    db.commit()
    db.refresh(seating_type)
    return seating_type


@pytest.fixture
def meeting_room_type(db):
    seating_type = SeatingType(
        name=SeatingTypeName.MEETING_ROOM,
        short_code="meet",
        hourly_rate=500.0,
        is_hourly=True,
        is_meeting_room=True,
        min_booking_duration=1,
    )
    db.add(seating_type)
    db.commit()
    db.refresh(seating_type)
    return seating_type


@pytest.fixture
def daily_pass_type(db):
    seating_type = SeatingType(
        name=SeatingTypeName.DAILY_PASS,
        short_code="day",
        hourly_rate=0.0,
        daily_rate=400.0,
        min_booking_duration=1,
    )
    db.add(seating_type)
    db.commit()
    db.refresh(seating_type)
    return seating_type


def make_seat(db, branch, seating_type, number, **kwargs) -> Seat:
    seat = Seat(
        branch_id=branch.id,
        seating_type_id=seating_type.id,
        seat_number=str(number),
        seat_code=f"{branch.short_code}{seating_type.short_code}{number}".upper(),
        **kwargs,
    )
    db.add(seat)
    db.commit()
    db.refresh(seat)
    return seat


@pytest.fixture
def hot_desks(db, branch, hot_desk_type):
    return [make_seat(db, branch, hot_desk_type, n, price=3000.0) for n in (1, 2, 3)]


@pytest.fixture
def meeting_room(db, branch, meeting_room_type):
    return make_seat(db, branch, meeting_room_type, 1, capacity=8, price=500.0)


# ============================================================================
# ACCOUNTS
# ============================================================================


@pytest.fixture
def customer(db):
    customer = Customer(name="Asha Rao", email="asha@example.com", password=hash_password(PASSWORD))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def other_customer(db):
    customer = Customer(name="Ravi Kumar", email="ravi@example.com", password=hash_password(PASSWORD))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def super_admin(db):
    admin = Admin(
        username="root",
        email="root@coworks.test",
        name="Super Admin",
        password=hash_password(PASSWORD),
        role=AdminRole.SUPER_ADMIN,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def branch_admin(db, branch):
    admin = Admin(
        username="ngb-admin",
        email="ngb@coworks.test",
        name="Branch Admin",
        password=hash_password(PASSWORD),
        role=AdminRole.BRANCH_ADMIN,
        branch_id=branch.id,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def customer_headers(customer):
    return auth_headers(create_customer_token(customer))


@pytest.fixture
def other_customer_headers(other_customer):
    return auth_headers(create_customer_token(other_customer))


@pytest.fixture
def super_admin_headers(super_admin):
    return auth_headers(create_admin_token(super_admin))


@pytest.fixture
def branch_admin_headers(branch_admin):
    return auth_headers(create_admin_token(branch_admin))
