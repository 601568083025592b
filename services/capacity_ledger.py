"""
Capacity ledger for parking spaces.

``available_spaces`` is only ever changed by the single-statement conditional
UPDATEs below, so independent handler processes can race on the same space
without a read-then-write window. None of these functions commit: the caller's
unit of work decides whether the change sticks.
"""
import logging

from sqlalchemy import case, update

from models import db
from models.enums import AvailabilityStatus, SpaceLifecycle
from models.parking_space import ParkingSpace
from utils.errors import CapacityExhausted, NotFound, ValidationError

logger = logging.getLogger(__name__)

LIMITED_THRESHOLD = 0.20

_NO_SYNC = {"synchronize_session": False}


def _load(space_id: int):
    # re-read inside the current transaction so callers see the new counts
    return db.session.get(ParkingSpace, space_id, populate_existing=True)


def _live_space(space_id: int):
    space = _load(space_id)
    if not space or space.is_deleted:
        raise NotFound("Parking space not found")
    return space


def reserve(space_id: int) -> ParkingSpace:
    """Claim one unit. Raises CapacityExhausted when nothing can be claimed."""
    db.session.flush()
    stmt = (
        update(ParkingSpace)
        .where(
            ParkingSpace.id == space_id,
            ParkingSpace.lifecycle == SpaceLifecycle.ACTIVE.value,
            ParkingSpace.availability_status == AvailabilityStatus.AVAILABLE.value,
            ParkingSpace.available_spaces > 0,
        )
        .values(available_spaces=ParkingSpace.available_spaces - 1)
    )
    result = db.session.execute(stmt, execution_options=_NO_SYNC)

    space = _live_space(space_id)
    if result.rowcount != 1:
        logger.info("capacity claim refused for space %s (available=%s)", space_id, space.available_spaces)
        raise CapacityExhausted()

    logger.debug("claimed unit on space %s, %s left", space_id, space.available_spaces)
    return space


def release(space_id: int) -> bool:
    """Give back one unit. Returns False when the space was already at capacity."""
    db.session.flush()
    stmt = (
        update(ParkingSpace)
        .where(
            ParkingSpace.id == space_id,
            ParkingSpace.available_spaces < ParkingSpace.total_spaces,
        )
        .values(available_spaces=ParkingSpace.available_spaces + 1)
    )
    result = db.session.execute(stmt, execution_options=_NO_SYNC)

    space = _load(space_id)
    if space is None:
        raise NotFound("Parking space not found")
    if result.rowcount != 1:
        logger.warning("release on space %s ignored, already at total %s", space_id, space.total_spaces)
        return False
    return True


def resize(space_id: int, new_total: int) -> ParkingSpace:
    if isinstance(new_total, bool) or not isinstance(new_total, int) or new_total <= 0:
        raise ValidationError("total_spaces must be a positive integer")

    db.session.flush()
    shifted = ParkingSpace.available_spaces + (new_total - ParkingSpace.total_spaces)
    clamped = case(
        (shifted < 0, 0),
        (shifted > new_total, new_total),
        else_=shifted,
    )
    # available_spaces first: every SET expression must see the old total_spaces
    stmt = (
        update(ParkingSpace)
        .where(
            ParkingSpace.id == space_id,
            ParkingSpace.lifecycle == SpaceLifecycle.ACTIVE.value,
        )
        .ordered_values(
            (ParkingSpace.available_spaces, clamped),
            (ParkingSpace.total_spaces, new_total),
        )
    )
    result = db.session.execute(stmt, execution_options=_NO_SYNC)
    if result.rowcount != 1:
        raise NotFound("Parking space not found")

    space = _load(space_id)
    logger.info("space %s resized to %s (available=%s)", space_id, space.total_spaces, space.available_spaces)
    return space


def derive_status(space: ParkingSpace) -> str:
    """Status shown to readers: closed wins, otherwise derived from the counts."""
    if space.availability_status == AvailabilityStatus.CLOSED.value:
        return AvailabilityStatus.CLOSED.value
    if space.available_spaces <= 0:
        return AvailabilityStatus.FULL.value
    if space.available_spaces <= space.total_spaces * LIMITED_THRESHOLD:
        return AvailabilityStatus.LIMITED.value
    return AvailabilityStatus.AVAILABLE.value
