"""
Reservation lifecycle.

    pending -> confirmed -> paid -> active -> completed
       \\          \\          \\        \\
        +----------+----------+--------+--> cancelled

Every move is a conditional UPDATE on the expected source status, so two
requests racing on the same reservation cannot both win. Moves that hand
capacity back (cancel, delete) release the unit in the same transaction.
"""
import logging
from datetime import datetime

from sqlalchemy import delete, update

from models import db, transaction
from models.enums import OPEN_RESERVATION_STATUSES, AvailabilityStatus, ReservationStatus
from models.reservation import Reservation
from models.vehicle import Vehicle
from services import availability, capacity_ledger, pricing
from utils.errors import CapacityExhausted, Forbidden, InvalidState, NotFound, ValidationError

logger = logging.getLogger(__name__)

_NO_SYNC = {"synchronize_session": False}

PENDING = ReservationStatus.PENDING.value
CONFIRMED = ReservationStatus.CONFIRMED.value
PAID = ReservationStatus.PAID.value
ACTIVE = ReservationStatus.ACTIVE.value
COMPLETED = ReservationStatus.COMPLETED.value
CANCELLED = ReservationStatus.CANCELLED.value


def _reload(reservation_id: int):
    return db.session.get(Reservation, reservation_id, populate_existing=True)


def _transition(reservation_id: int, from_statuses, to_status: str, *conditions, **values) -> Reservation:
    now = datetime.utcnow()
    stmt = (
        update(Reservation)
        .where(
            Reservation.id == reservation_id,
            Reservation.status.in_(from_statuses),
            *conditions,
        )
        .values(status=to_status, updated_at=now, **values)
    )
    result = db.session.execute(stmt, execution_options=_NO_SYNC)

    reservation = _reload(reservation_id)
    if reservation is None:
        raise NotFound("Reservation not found")
    if result.rowcount != 1:
        if reservation.status in from_statuses:
            # status matched, so an extra condition (clock) held it back
            raise InvalidState(f"Reservation cannot become {to_status} yet")
        raise InvalidState(f"Reservation is {reservation.status} and cannot become {to_status}")

    logger.info("reservation %s -> %s", reservation_id, to_status)
    return reservation


# ---------- creation ----------

def create_reservation(user, parking_space_id, vehicle_id, start_time, end_time, reservation_type,
                       discount=0, discount_note=None) -> Reservation:
    vehicle = db.session.get(Vehicle, vehicle_id)
    if not vehicle or vehicle.user_id != user.id:
        raise ValidationError("Invalid vehicle selection")

    space = availability.get_space(parking_space_id)
    if space.availability_status != AvailabilityStatus.AVAILABLE.value or space.available_spaces <= 0:
        raise CapacityExhausted()

    quote = pricing.compute(
        reservation_type, start_time, end_time,
        space.hourly_rate, space.whole_day_rate, discount,
    )

    # claim + insert commit together; a failed insert rolls the claim back
    with transaction():
        space = capacity_ledger.reserve(space.id)
        reservation = Reservation(
            user_id=user.id,
            parking_space_id=space.id,
            vehicle_id=vehicle.id,
            start_time=start_time,
            end_time=end_time,
            reservation_type=reservation_type,
            hourly_rate=space.hourly_rate,
            whole_day_rate=space.whole_day_rate,
            discount_percent=quote.discount_percent,
            discount=quote.discount,
            tax=quote.tax,
            total_price=quote.total,
            discount_note=discount_note,
            status=PENDING,
        )
        db.session.add(reservation)
        db.session.flush()

    logger.info(
        "reservation %s created by user %s on space %s total=%s",
        reservation.id, user.id, space.id, quote.total,
    )
    return reservation


# ---------- reads ----------

def get_reservation(caps, reservation_id: int) -> Reservation:
    reservation = db.session.get(Reservation, reservation_id)
    # hide existence from users who may not see it
    if not reservation or not caps.can_view_reservation(reservation):
        raise NotFound("Reservation not found")
    return reservation


def list_reservations(caps, status=None, user_id=None, page=1, limit=10):
    q = caps.scope_reservations(Reservation.query, user_id=user_id)
    if status:
        q = q.filter(Reservation.status == status)
    q = q.order_by(Reservation.created_at.desc(), Reservation.id.desc())
    return availability.paginate(q, page, limit)


# ---------- owner / admin moves ----------
#
# The underscored moves write without committing so update_reservation can
# chain a reschedule and a status change inside one transaction.

def _confirm(reservation_id: int) -> Reservation:
    return _transition(reservation_id, (PENDING,), CONFIRMED)


def _cancel(reservation_id: int) -> Reservation:
    # a second cancel finds no open status and fails before touching capacity
    reservation = _transition(
        reservation_id, OPEN_RESERVATION_STATUSES, CANCELLED,
        cancelled_at=datetime.utcnow(),
    )
    capacity_ledger.release(reservation.parking_space_id)
    return reservation


def _reschedule(reservation: Reservation, start_time=None, end_time=None) -> Reservation:
    start = start_time or reservation.start_time
    end = end_time or reservation.end_time

    quote = pricing.compute(
        reservation.reservation_type, start, end,
        reservation.hourly_rate, reservation.whole_day_rate, reservation.discount_percent,
    )
    return _transition(
        reservation.id, (PENDING,), PENDING,
        start_time=start, end_time=end,
        discount=quote.discount, tax=quote.tax, total_price=quote.total,
    )


def _start(reservation_id: int, now) -> Reservation:
    return _transition(reservation_id, (PAID,), ACTIVE, Reservation.start_time <= now)


def _complete(reservation_id: int, now) -> Reservation:
    return _transition(reservation_id, (ACTIVE,), COMPLETED, Reservation.end_time < now)


def confirm(caps, reservation_id: int) -> Reservation:
    reservation = get_reservation(caps, reservation_id)
    if not caps.can_confirm(reservation):
        raise Forbidden()
    with transaction():
        reservation = _confirm(reservation.id)
    return reservation


def cancel(caps, reservation_id: int) -> Reservation:
    reservation = get_reservation(caps, reservation_id)
    if not caps.can_cancel(reservation):
        raise Forbidden()
    with transaction():
        reservation = _cancel(reservation.id)
    return reservation


def delete_reservation(caps, reservation_id: int) -> int:
    reservation = get_reservation(caps, reservation_id)
    if not caps.can_change_booking(reservation):
        raise Forbidden()

    space_id = reservation.parking_space_id
    with transaction():
        stmt = delete(Reservation).where(
            Reservation.id == reservation.id,
            Reservation.status == PENDING,
        )
        result = db.session.execute(stmt, execution_options=_NO_SYNC)
        if result.rowcount != 1:
            raise InvalidState("Can only delete pending reservations")
        db.session.expunge(reservation)
        capacity_ledger.release(space_id)

    logger.info("reservation %s deleted, unit released on space %s", reservation_id, space_id)
    return reservation_id


def reschedule(caps, reservation_id: int, start_time=None, end_time=None) -> Reservation:
    """Move a pending reservation, re-pricing it from its rate snapshot."""
    reservation = get_reservation(caps, reservation_id)
    if not caps.can_change_booking(reservation):
        raise Forbidden()
    with transaction():
        reservation = _reschedule(reservation, start_time, end_time)
    return reservation


# ---------- payment and clock driven moves ----------

def mark_paid(reservation_id: int) -> Reservation:
    """Confirmed -> paid. Runs inside the payment's transaction, never commits."""
    return _transition(reservation_id, (CONFIRMED,), PAID)


def start(reservation_id: int, now=None) -> Reservation:
    with transaction():
        reservation = _start(reservation_id, now or datetime.utcnow())
    return reservation


def complete(reservation_id: int, now=None) -> Reservation:
    with transaction():
        reservation = _complete(reservation_id, now or datetime.utcnow())
    return reservation


def advance_by_clock(now=None) -> dict:
    """Sweep paid -> active and active -> completed for everything that is due."""
    now = now or datetime.utcnow()
    with transaction():
        started = db.session.execute(
            update(Reservation)
            .where(Reservation.status == PAID, Reservation.start_time <= now)
            .values(status=ACTIVE, updated_at=now),
            execution_options=_NO_SYNC,
        ).rowcount
        completed = db.session.execute(
            update(Reservation)
            .where(Reservation.status == ACTIVE, Reservation.end_time < now)
            .values(status=COMPLETED, updated_at=now),
            execution_options=_NO_SYNC,
        ).rowcount

    if started or completed:
        logger.info("clock sweep at %s: %s started, %s completed", now.isoformat(), started, completed)
    return {"started": started, "completed": completed}


# ---------- PUT dispatch ----------

_STATUS_MOVES = {
    CONFIRMED: (lambda caps, r: caps.can_confirm(r), lambda r, now: _confirm(r.id)),
    CANCELLED: (lambda caps, r: caps.can_cancel(r), lambda r, now: _cancel(r.id)),
    ACTIVE: (lambda caps, r: caps.can_drive_clock, lambda r, now: _start(r.id, now)),
    COMPLETED: (lambda caps, r: caps.can_drive_clock, lambda r, now: _complete(r.id, now)),
}


def update_reservation(caps, reservation_id: int, status=None, start_time=None, end_time=None, now=None) -> Reservation:
    """
    Apply a PUT body: optional new times, then an optional status move.

    Every check runs before the first write and all writes share one
    transaction, so a rejected request leaves the reservation untouched.
    """
    wants_reschedule = start_time is not None or end_time is not None
    if status is None and not wants_reschedule:
        raise ValidationError("Nothing to update")
    if status == PAID:
        raise InvalidState("Reservations become paid through a payment")
    if status == PENDING:
        raise InvalidState("Reservations cannot return to pending")
    if status is not None and status not in _STATUS_MOVES:
        raise ValidationError("Unknown status")

    reservation = get_reservation(caps, reservation_id)
    if wants_reschedule and not caps.can_change_booking(reservation):
        raise Forbidden()
    if status is not None:
        allowed, move = _STATUS_MOVES[status]
        if not allowed(caps, reservation):
            raise Forbidden()

    now = now or datetime.utcnow()
    with transaction():
        if wants_reschedule:
            reservation = _reschedule(reservation, start_time, end_time)
        if status is not None:
            reservation = move(reservation, now)
    return reservation
