from datetime import datetime

from flask import Blueprint, request, g
from sqlalchemy import exists, update

from models import db, transaction
from models.enums import OPEN_RESERVATION_STATUSES, SETTABLE_AVAILABILITY, SpaceLifecycle
from models.parking_space import ParkingSpace
from models.reservation import Reservation
from security.rbac import ADMIN, ESTABLISHMENT, capabilities_for, require_roles
from services import availability, capacity_ledger
from utils.auth_context import login_required
from utils.errors import Forbidden, InvalidState, ValidationError
from utils.parsing import json_body, page_args, parse_bool, parse_int, parse_money
from utils.responses import iso, money, ok

parking_spaces_bp = Blueprint("parking_spaces", __name__, url_prefix="/parking-spaces")

REQUIRED_FIELDS = ("city", "establishment_name", "address", "total_spaces", "hourly_rate", "whole_day_rate")
TEXT_FIELDS = ("city", "establishment_name", "address")


def space_json(s: ParkingSpace) -> dict:
    return {
        "id": s.id,
        "owner_user_id": s.owner_user_id,
        "city": s.city,
        "establishment_name": s.establishment_name,
        "address": s.address,
        "total_spaces": s.total_spaces,
        "available_spaces": s.available_spaces,
        "hourly_rate": money(s.hourly_rate),
        "whole_day_rate": money(s.whole_day_rate),
        "availability_status": capacity_ledger.derive_status(s),
        "status_override": s.availability_status,
        "created_at": iso(s.created_at),
        "updated_at": iso(s.updated_at),
    }


def _text(data, field):
    value = (data.get(field) or "")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def _settable_status(value):
    status = (value or "").strip().lower() if isinstance(value, str) else None
    if status not in SETTABLE_AVAILABILITY:
        raise ValidationError("availability_status must be available or closed")
    return status


# ---------- public: search ----------
@parking_spaces_bp.get("")
def list_parking_spaces():
    page, limit = page_args()
    items, pagination = availability.search_spaces(
        city=(request.args.get("city") or "").strip() or None,
        establishment=(request.args.get("establishment") or "").strip() or None,
        available_only=parse_bool(request.args.get("available_only")),
        page=page,
        limit=limit,
    )
    return ok("Parking spaces fetched successfully", [space_json(s) for s in items], pagination)


@parking_spaces_bp.get("/<int:space_id>")
def get_parking_space(space_id: int):
    space = availability.get_space(space_id)
    return ok("Parking space fetched successfully", space_json(space))


# ---------- ESTABLISHMENT/ADMIN: manage spaces ----------
@parking_spaces_bp.post("")
@require_roles(ESTABLISHMENT)
def create_parking_space():
    data = json_body()
    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
    if missing:
        raise ValidationError("All required fields must be provided: " + ", ".join(missing))

    total = parse_int(data.get("total_spaces"), "total_spaces", minimum=1)
    space = ParkingSpace(
        owner_user_id=g.user.id,
        city=_text(data, "city"),
        establishment_name=_text(data, "establishment_name"),
        address=_text(data, "address"),
        total_spaces=total,
        available_spaces=total,
        hourly_rate=parse_money(data.get("hourly_rate"), "hourly_rate"),
        whole_day_rate=parse_money(data.get("whole_day_rate"), "whole_day_rate"),
        availability_status=_settable_status(data.get("availability_status") or "available"),
    )
    with transaction():
        db.session.add(space)

    return ok("Parking space created successfully", space_json(space), status=201)


@parking_spaces_bp.put("/<int:space_id>")
@login_required
def update_parking_space(space_id: int):
    data = json_body()
    space = availability.get_space(space_id)
    if not capabilities_for(g.user).can_edit_space(space):
        raise Forbidden()

    # validate everything before the first write
    changes = {}
    for field in TEXT_FIELDS:
        if data.get(field) not in (None, ""):
            changes[field] = _text(data, field)
    for field in ("hourly_rate", "whole_day_rate"):
        if data.get(field) not in (None, ""):
            changes[field] = parse_money(data.get(field), field)
    if data.get("availability_status"):
        changes["availability_status"] = _settable_status(data.get("availability_status"))
    new_total = None
    if data.get("total_spaces") not in (None, ""):
        new_total = parse_int(data.get("total_spaces"), "total_spaces", minimum=1)

    with transaction():
        for field, value in changes.items():
            setattr(space, field, value)
        if changes:
            space.updated_at = datetime.utcnow()
        if new_total is not None:
            space = capacity_ledger.resize(space.id, new_total)

    return ok("Parking space updated successfully", space_json(space))


@parking_spaces_bp.delete("/<int:space_id>")
@require_roles(ADMIN)
def delete_parking_space(space_id: int):
    space = availability.get_space(space_id)

    open_reservations = exists().where(
        Reservation.parking_space_id == space.id,
        Reservation.status.in_(OPEN_RESERVATION_STATUSES),
    )
    with transaction():
        result = db.session.execute(
            update(ParkingSpace)
            .where(
                ParkingSpace.id == space.id,
                ParkingSpace.lifecycle == SpaceLifecycle.ACTIVE.value,
                ~open_reservations,
            )
            .values(lifecycle=SpaceLifecycle.DELETED.value, updated_at=datetime.utcnow()),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount != 1:
            raise InvalidState("Cannot delete parking space with active reservations")

    return ok("Parking space deleted successfully")
