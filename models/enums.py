import enum


class SpaceLifecycle(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    LIMITED = "limited"
    FULL = "full"
    CLOSED = "closed"


# Operators may only store these; limited/full are derived from the counts
SETTABLE_AVAILABILITY = (AvailabilityStatus.AVAILABLE.value, AvailabilityStatus.CLOSED.value)


class ReservationType(str, enum.Enum):
    HOURLY = "hourly"
    WHOLE_DAY = "whole_day"


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAID = "paid"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that still hold a claimed capacity unit
OPEN_RESERVATION_STATUSES = (
    ReservationStatus.PENDING.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.PAID.value,
    ReservationStatus.ACTIVE.value,
)


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
