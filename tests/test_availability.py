from datetime import datetime, timedelta

import pytest

from models import db
from services import availability
from utils.errors import NotFound


@pytest.fixture
def spaces(make_space, establishment):
    base = datetime(2026, 1, 1, 9, 0, 0)
    rows = [
        make_space(establishment, city="Makati", establishment_name="Greenbelt Parking"),
        make_space(establishment, city="Quezon City", establishment_name="Trinoma Basement"),
        make_space(establishment, city="makati", establishment_name="Power Plant Mall", available=0),
        make_space(establishment, city="Taguig", establishment_name="BGC Greenbelt Annex", status="closed"),
    ]
    # deterministic creation order, oldest first
    for offset, row in enumerate(rows):
        row.created_at = base + timedelta(minutes=offset)
    db.session.commit()
    return rows


class TestSearch:

    def test_newest_first(self, spaces):
        items, pagination = availability.search_spaces()

        assert [s.id for s in items] == [s.id for s in reversed(spaces)]
        assert pagination["total"] == 4

    def test_city_is_case_insensitive_substring(self, spaces):
        items, _ = availability.search_spaces(city="MAKA")

        assert {s.id for s in items} == {spaces[0].id, spaces[2].id}

    def test_establishment_substring(self, spaces):
        items, _ = availability.search_spaces(establishment="greenbelt")

        assert {s.id for s in items} == {spaces[0].id, spaces[3].id}

    def test_available_only_skips_full_and_closed(self, spaces):
        items, _ = availability.search_spaces(available_only=True)

        assert {s.id for s in items} == {spaces[0].id, spaces[1].id}

    def test_soft_deleted_never_listed(self, spaces):
        spaces[1].lifecycle = "DELETED"
        db.session.commit()

        items, pagination = availability.search_spaces()
        assert spaces[1].id not in {s.id for s in items}
        assert pagination["total"] == 3

    def test_pagination(self, spaces):
        items, pagination = availability.search_spaces(page=2, limit=3)

        assert [s.id for s in items] == [spaces[0].id]
        assert pagination == {"page": 2, "limit": 3, "total": 4, "totalPages": 2}

    def test_read_only(self, spaces):
        before = [(s.id, s.available_spaces) for s in spaces]
        availability.search_spaces(available_only=True)
        db.session.expire_all()

        assert [(s.id, s.available_spaces) for s in spaces] == before


class TestGetSpace:

    def test_found(self, space):
        assert availability.get_space(space.id).id == space.id

    def test_deleted_is_not_found(self, space):
        space.lifecycle = "DELETED"
        db.session.commit()

        with pytest.raises(NotFound):
            availability.get_space(space.id)
