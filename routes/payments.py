from flask import Blueprint, request, current_app, g

from models.enums import PaymentStatus
from models.payment import Payment
from security.rbac import capabilities_for
from services import payments
from utils.auth_context import login_required
from utils.errors import ValidationError
from utils.parsing import json_body, page_args, parse_int
from utils.responses import iso, money, ok

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")

STATUS_VALUES = {s.value for s in PaymentStatus}


def payment_json(p: Payment) -> dict:
    r = p.reservation
    return {
        "id": p.id,
        "reservation_id": p.reservation_id,
        "payment_method": p.payment_method,
        "amount": money(p.amount),
        "payment_status": p.payment_status,
        "receipt_number": p.receipt_number,
        "payment_date": iso(p.payment_date),
        "reservation": {
            "user_id": r.user_id,
            "status": r.status,
            "start_time": iso(r.start_time),
            "end_time": iso(r.end_time),
            "establishment_name": r.parking_space.establishment_name if r.parking_space else None,
            "city": r.parking_space.city if r.parking_space else None,
        } if r else None,
    }


@payments_bp.post("")
@login_required
def create_payment():
    data = json_body()
    if not data.get("reservation_id") or not data.get("payment_method"):
        raise ValidationError("Reservation ID and payment method are required")

    method = str(data.get("payment_method")).strip().lower()
    allowed = current_app.config.get("PAYMENT_METHODS") or []
    if method not in allowed:
        raise ValidationError("payment_method must be one of: " + ", ".join(allowed))

    payment = payments.create_payment(
        parse_int(data.get("reservation_id"), "reservation_id", minimum=1),
        method,
        g.user,
    )
    return ok("Payment processed successfully", payment_json(payment), status=201)


@payments_bp.get("")
@login_required
def list_payments():
    page, limit = page_args()
    status = str(request.args.get("status") or "").strip().lower() or None
    if status and status not in STATUS_VALUES:
        raise ValidationError("Unknown payment status")
    user_id = request.args.get("user_id")

    items, pagination = payments.list_payments(
        capabilities_for(g.user),
        status=status,
        user_id=parse_int(user_id, "user_id") if user_id else None,
        page=page,
        limit=limit,
    )
    return ok("Payments fetched successfully", [payment_json(p) for p in items], pagination)
