import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from app import create_app
from models import db
from models.parking_space import ParkingSpace
from models.user import User
from services import capacity_ledger
from utils.errors import CapacityExhausted, NotFound, ValidationError


def _counts(space_id):
    space = db.session.get(ParkingSpace, space_id, populate_existing=True)
    return space.available_spaces, space.total_spaces


class TestReserve:

    def test_decrements_by_one(self, space):
        capacity_ledger.reserve(space.id)
        db.session.commit()

        assert _counts(space.id) == (9, 10)

    def test_exhausted_space_refuses(self, make_space, establishment):
        full = make_space(establishment, total=2, available=0)

        with pytest.raises(CapacityExhausted):
            capacity_ledger.reserve(full.id)
        db.session.rollback()

        assert _counts(full.id) == (0, 2)

    def test_k_of_n_sequential_claims(self, make_space, establishment):
        small = make_space(establishment, total=3)
        results = []
        for _ in range(5):
            try:
                capacity_ledger.reserve(small.id)
                db.session.commit()
                results.append(True)
            except CapacityExhausted:
                db.session.rollback()
                results.append(False)

        assert results == [True, True, True, False, False]
        assert _counts(small.id) == (0, 3)

    def test_closed_space_refuses(self, make_space, establishment):
        closed = make_space(establishment, status="closed")

        with pytest.raises(CapacityExhausted):
            capacity_ledger.reserve(closed.id)

    def test_deleted_space_is_not_found(self, space):
        space.lifecycle = "DELETED"
        db.session.commit()

        with pytest.raises(NotFound):
            capacity_ledger.reserve(space.id)

    def test_unknown_space_is_not_found(self, app):
        with pytest.raises(NotFound):
            capacity_ledger.reserve(9999)


class TestRelease:

    def test_increments_by_one(self, make_space, establishment):
        s = make_space(establishment, total=5, available=2)

        assert capacity_ledger.release(s.id) is True
        db.session.commit()
        assert _counts(s.id) == (3, 5)

    def test_clamped_at_total(self, space):
        assert capacity_ledger.release(space.id) is False
        db.session.commit()

        assert _counts(space.id) == (10, 10)

    def test_unknown_space(self, app):
        with pytest.raises(NotFound):
            capacity_ledger.release(9999)


class TestResize:

    def test_grow_adds_delta(self, make_space, establishment):
        s = make_space(establishment, total=10, available=4)
        capacity_ledger.resize(s.id, 15)
        db.session.commit()

        assert _counts(s.id) == (9, 15)

    def test_shrink_subtracts_delta(self, make_space, establishment):
        s = make_space(establishment, total=10, available=8)
        capacity_ledger.resize(s.id, 5)
        db.session.commit()

        assert _counts(s.id) == (3, 5)

    def test_shrink_below_claimed_clamps_to_zero(self, make_space, establishment):
        s = make_space(establishment, total=10, available=2)
        capacity_ledger.resize(s.id, 4)
        db.session.commit()

        assert _counts(s.id) == (0, 4)

    @pytest.mark.parametrize("bad", [0, -3, "7", 2.5, True])
    def test_rejects_non_positive_or_non_int(self, space, bad):
        with pytest.raises(ValidationError):
            capacity_ledger.resize(space.id, bad)

    def test_deleted_space(self, space):
        space.lifecycle = "DELETED"
        db.session.commit()

        with pytest.raises(NotFound):
            capacity_ledger.resize(space.id, 20)


class TestDeriveStatus:

    @pytest.mark.parametrize("available,override,expected", [
        (10, "available", "available"),
        (3, "available", "available"),
        (2, "available", "limited"),
        (1, "available", "limited"),
        (0, "available", "full"),
        (10, "closed", "closed"),
        (0, "closed", "closed"),
    ])
    def test_table(self, available, override, expected):
        s = ParkingSpace(total_spaces=10, available_spaces=available, availability_status=override)
        assert capacity_ledger.derive_status(s) == expected


class TestConcurrentReserve:
    """Many threads, each with its own session and connection, race on one space."""

    def test_exactly_k_of_n_succeed(self, tmp_path):
        uri = "sqlite:///" + str(tmp_path / "race.db")
        app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": uri,
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30}},
            "SEED_ROLES_ON_STARTUP": False,
            "LOG_LEVEL": "WARNING",
        })
        k, n = 5, 20

        with app.app_context():
            db.create_all()
            owner = User(email="owner@example.com")
            db.session.add(owner)
            db.session.flush()
            s = ParkingSpace(
                owner_user_id=owner.id, city="Pasig", establishment_name="Tiendesitas",
                address="Ortigas Ave", total_spaces=k, available_spaces=k,
                hourly_rate=Decimal("40"), whole_day_rate=Decimal("200"),
            )
            db.session.add(s)
            db.session.commit()
            space_id = s.id

        barrier = threading.Barrier(n)

        def attempt():
            with app.app_context():
                barrier.wait()
                try:
                    capacity_ledger.reserve(space_id)
                    db.session.commit()
                    return "ok"
                except CapacityExhausted:
                    db.session.rollback()
                    return "exhausted"

        with ThreadPoolExecutor(max_workers=n) as pool:
            outcomes = list(pool.map(lambda _: attempt(), range(n)))

        assert outcomes.count("ok") == k
        assert outcomes.count("exhausted") == n - k

        with app.app_context():
            final = db.session.get(ParkingSpace, space_id)
            assert final.available_spaces == 0
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
