"""
Pytest configuration and fixtures.

Each test gets a fresh in-memory SQLite database with the default roles seeded.
The test body runs inside the application context, so factories and the test
client share one session.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app import create_app
from models import db
from models.parking_space import ParkingSpace
from models.user import Role, User
from models.vehicle import Vehicle
from security.rbac import capabilities_for
from security.tokens import issue_token
from utils.seed import seed_roles


def _config(database_uri):
    return {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": database_uri,
        "SEED_ROLES_ON_STARTUP": False,
        "LOG_LEVEL": "WARNING",
    }


@pytest.fixture
def app():
    app = create_app(_config("sqlite:///:memory:"))
    with app.app_context():
        db.create_all()
        seed_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_user(app):
    def _make(email, role="DRIVER"):
        user = User(email=email, first_name=email.split("@")[0].title(), last_name="Tester")
        user.roles.append(Role.query.filter_by(name=role).one())
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_vehicle(app):
    counter = {"n": 0}

    def _make(user):
        counter["n"] += 1
        vehicle = Vehicle(
            user_id=user.id,
            vehicle_type="sedan",
            year_make_model="2020 Toyota Vios",
            color="white",
            plate_number=f"ABC{counter['n']:04d}",
        )
        db.session.add(vehicle)
        db.session.commit()
        return vehicle
    return _make


@pytest.fixture
def make_space(app):
    def _make(owner, total=10, available=None, hourly_rate="50.00", whole_day_rate="300.00",
              city="Makati", establishment_name="Glorietta Parking", status="available"):
        space = ParkingSpace(
            owner_user_id=owner.id,
            city=city,
            establishment_name=establishment_name,
            address="Ayala Center",
            total_spaces=total,
            available_spaces=total if available is None else available,
            hourly_rate=Decimal(hourly_rate),
            whole_day_rate=Decimal(whole_day_rate),
            availability_status=status,
        )
        db.session.add(space)
        db.session.commit()
        return space
    return _make


# =============================================================================
# People
# =============================================================================

@pytest.fixture
def driver(make_user):
    return make_user("driver@example.com", "DRIVER")


@pytest.fixture
def other_driver(make_user):
    return make_user("other@example.com", "DRIVER")


@pytest.fixture
def establishment(make_user):
    return make_user("operator@example.com", "ESTABLISHMENT")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", "ADMIN")


@pytest.fixture
def caps():
    return capabilities_for


@pytest.fixture
def auth_header(app):
    def _header(user):
        return {"Authorization": f"Bearer {issue_token(user.id, label='pytest')}"}
    return _header


@pytest.fixture
def space(make_space, establishment):
    return make_space(establishment)


@pytest.fixture
def vehicle(make_vehicle, driver):
    return make_vehicle(driver)


@pytest.fixture
def window():
    """A four hour booking window in the future."""
    start = datetime(2030, 1, 15, 8, 0, 0)
    return start, start + timedelta(hours=4)
