from flask import Blueprint, request, g

from models.enums import ReservationStatus
from models.reservation import Reservation
from security.rbac import capabilities_for
from services import reservations
from utils.auth_context import login_required
from utils.errors import ValidationError
from utils.parsing import json_body, page_args, parse_int, parse_iso
from utils.responses import iso, money, ok

reservations_bp = Blueprint("reservations", __name__, url_prefix="/reservations")

STATUS_VALUES = {s.value for s in ReservationStatus}


def reservation_json(r: Reservation) -> dict:
    space = r.parking_space
    vehicle = r.vehicle
    user = r.user
    return {
        "id": r.id,
        "user_id": r.user_id,
        "parking_space_id": r.parking_space_id,
        "vehicle_id": r.vehicle_id,
        "start_time": iso(r.start_time),
        "end_time": iso(r.end_time),
        "reservation_type": r.reservation_type,
        "hourly_rate": money(r.hourly_rate),
        "whole_day_rate": money(r.whole_day_rate),
        "discount": money(r.discount),
        "tax": money(r.tax),
        "total_price": money(r.total_price),
        "discount_note": r.discount_note,
        "status": r.status,
        "created_at": iso(r.created_at),
        "updated_at": iso(r.updated_at),
        "cancelled_at": iso(r.cancelled_at),
        "user": {
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
        } if user else None,
        "parking_space": {
            "establishment_name": space.establishment_name,
            "city": space.city,
            "address": space.address,
        } if space else None,
        "vehicle": {
            "vehicle_type": vehicle.vehicle_type,
            "year_make_model": vehicle.year_make_model,
            "plate_number": vehicle.plate_number,
        } if vehicle else None,
    }


def _status_arg(value):
    status = str(value or "").strip().lower() or None
    if status and status not in STATUS_VALUES:
        raise ValidationError("Unknown status")
    return status


# ---------- DRIVERS: book a space ----------
@reservations_bp.post("")
@login_required
def create_reservation():
    data = json_body()
    required = ("parking_space_id", "vehicle_id", "start_time", "end_time", "reservation_type")
    if any(data.get(f) in (None, "") for f in required):
        raise ValidationError("All required fields must be provided")

    note = data.get("discount_note")
    if note is not None and not isinstance(note, str):
        raise ValidationError("discount_note must be text")

    reservation = reservations.create_reservation(
        g.user,
        parking_space_id=parse_int(data.get("parking_space_id"), "parking_space_id", minimum=1),
        vehicle_id=parse_int(data.get("vehicle_id"), "vehicle_id", minimum=1),
        start_time=parse_iso(data.get("start_time"), "start_time"),
        end_time=parse_iso(data.get("end_time"), "end_time"),
        reservation_type=str(data.get("reservation_type")).strip().lower(),
        discount=data.get("discount") or 0,
        discount_note=(note or "").strip() or None,
    )
    return ok("Reservation created successfully", reservation_json(reservation), status=201)


@reservations_bp.get("")
@login_required
def list_reservations():
    page, limit = page_args()
    user_id = request.args.get("user_id")
    items, pagination = reservations.list_reservations(
        capabilities_for(g.user),
        status=_status_arg(request.args.get("status")),
        user_id=parse_int(user_id, "user_id") if user_id else None,
        page=page,
        limit=limit,
    )
    return ok("Reservations fetched successfully", [reservation_json(r) for r in items], pagination)


@reservations_bp.get("/<int:reservation_id>")
@login_required
def get_reservation(reservation_id: int):
    reservation = reservations.get_reservation(capabilities_for(g.user), reservation_id)
    return ok("Reservation fetched successfully", reservation_json(reservation))


@reservations_bp.put("/<int:reservation_id>")
@login_required
def update_reservation(reservation_id: int):
    data = json_body()
    start_time = parse_iso(data["start_time"], "start_time") if data.get("start_time") else None
    end_time = parse_iso(data["end_time"], "end_time") if data.get("end_time") else None

    reservation = reservations.update_reservation(
        capabilities_for(g.user),
        reservation_id,
        status=_status_arg(data.get("status")),
        start_time=start_time,
        end_time=end_time,
    )
    return ok("Reservation updated successfully", reservation_json(reservation))


@reservations_bp.delete("/<int:reservation_id>")
@login_required
def delete_reservation(reservation_id: int):
    reservations.delete_reservation(capabilities_for(g.user), reservation_id)
    return ok("Reservation deleted successfully")
