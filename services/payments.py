import logging
import secrets
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from models import db, transaction
from models.enums import PaymentStatus, ReservationStatus
from models.payment import Payment
from models.reservation import Reservation
from services import availability, reservations
from utils.errors import Conflict, Forbidden, InvalidState, NotFound

logger = logging.getLogger(__name__)


def generate_receipt_number(reservation_id: int) -> str:
    # random tail keeps two receipts in the same second apart; the column is unique as well
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    return f"RCP-{stamp}-{reservation_id}-{secrets.token_hex(4).upper()}"


def create_payment(reservation_id: int, method: str, requester) -> Payment:
    """
    Settle a confirmed reservation synchronously.

    The reservation moves confirmed -> paid and the completed payment row is
    inserted in one transaction: either both are visible or neither is.
    """
    reservation = db.session.get(Reservation, reservation_id)
    if not reservation:
        raise NotFound("Reservation not found")
    if reservation.user_id != requester.id:
        raise Forbidden()
    if reservation.status != ReservationStatus.CONFIRMED.value:
        raise InvalidState("Reservation must be confirmed before payment")

    try:
        with transaction():
            # loses cleanly to a concurrent payment: the status guard fails first
            reservation = reservations.mark_paid(reservation.id)
            payment = Payment(
                reservation_id=reservation.id,
                payment_method=method,
                amount=reservation.total_price,
                payment_status=PaymentStatus.COMPLETED.value,
                receipt_number=generate_receipt_number(reservation.id),
            )
            db.session.add(payment)
            db.session.flush()
    except IntegrityError:
        # rolled back already; look again to tell a duplicate from a receipt clash
        if Payment.query.filter_by(reservation_id=reservation_id).first() is not None:
            logger.warning("duplicate payment rejected for reservation %s", reservation_id)
            raise Conflict("Payment already recorded for this reservation")
        logger.warning("payment for reservation %s hit a uniqueness conflict", reservation_id)
        raise Conflict("Payment could not be recorded, please retry")

    logger.info(
        "payment %s settled reservation %s amount=%s receipt=%s",
        payment.id, reservation_id, payment.amount, payment.receipt_number,
    )
    return payment


def list_payments(caps, status=None, user_id=None, page=1, limit=10):
    q = Payment.query.join(Reservation, Payment.reservation_id == Reservation.id)
    q = caps.scope_reservations(q, user_id=user_id)
    if status:
        q = q.filter(Payment.payment_status == status)
    q = q.order_by(Payment.payment_date.desc(), Payment.id.desc())
    return availability.paginate(q, page, limit)
