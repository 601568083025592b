from functools import wraps
from flask import g, jsonify

from models.parking_space import ParkingSpace
from models.reservation import Reservation

DRIVER = "DRIVER"
ESTABLISHMENT = "ESTABLISHMENT"
ADMIN = "ADMIN"
ROLES = (DRIVER, ESTABLISHMENT, ADMIN)


class Capabilities:
    """
    What a signed-in user may do. One subclass per role; routes and services
    ask the object instead of comparing role names.
    """
    role = None
    can_create_spaces = False
    can_delete_spaces = False
    can_drive_clock = False

    def __init__(self, user):
        self.user = user

    def owns_reservation(self, reservation) -> bool:
        return reservation.user_id == self.user.id

    def can_edit_space(self, space) -> bool:
        return False

    def can_view_reservation(self, reservation) -> bool:
        return self.owns_reservation(reservation)

    def can_confirm(self, reservation) -> bool:
        return False

    def can_cancel(self, reservation) -> bool:
        return self.owns_reservation(reservation)

    def can_change_booking(self, reservation) -> bool:
        return self.owns_reservation(reservation)

    def scope_reservations(self, q, user_id=None):
        return q.filter(Reservation.user_id == self.user.id)


class DriverCapabilities(Capabilities):
    role = DRIVER


class EstablishmentCapabilities(Capabilities):
    role = ESTABLISHMENT
    can_create_spaces = True

    def _runs_space_of(self, reservation) -> bool:
        space = reservation.parking_space
        return space is not None and space.owner_user_id == self.user.id

    def can_edit_space(self, space) -> bool:
        return space.owner_user_id == self.user.id

    def can_view_reservation(self, reservation) -> bool:
        return self.owns_reservation(reservation) or self._runs_space_of(reservation)

    def can_confirm(self, reservation) -> bool:
        return self._runs_space_of(reservation)

    def can_cancel(self, reservation) -> bool:
        return self.owns_reservation(reservation) or self._runs_space_of(reservation)

    def scope_reservations(self, q, user_id=None):
        own_spaces = ParkingSpace.query.with_entities(ParkingSpace.id).filter(
            ParkingSpace.owner_user_id == self.user.id
        )
        q = q.filter(
            (Reservation.user_id == self.user.id)
            | (Reservation.parking_space_id.in_(own_spaces.scalar_subquery()))
        )
        if user_id is not None:
            q = q.filter(Reservation.user_id == user_id)
        return q


class AdminCapabilities(Capabilities):
    role = ADMIN
    can_create_spaces = True
    can_delete_spaces = True
    can_drive_clock = True

    def can_edit_space(self, space) -> bool:
        return True

    def can_view_reservation(self, reservation) -> bool:
        return True

    def can_confirm(self, reservation) -> bool:
        return True

    def can_cancel(self, reservation) -> bool:
        return True

    def can_change_booking(self, reservation) -> bool:
        return True

    def scope_reservations(self, q, user_id=None):
        if user_id is not None:
            q = q.filter(Reservation.user_id == user_id)
        return q


# strongest role wins when a user holds several
_PRECEDENCE = (
    (ADMIN, AdminCapabilities),
    (ESTABLISHMENT, EstablishmentCapabilities),
    (DRIVER, DriverCapabilities),
)


def capabilities_for(user) -> Capabilities:
    names = user.role_names
    for name, cls in _PRECEDENCE:
        if name in names:
            return cls(user)
    return DriverCapabilities(user)


def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            if not user.has_role(ADMIN) and not user.role_names.intersection(role_names):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
