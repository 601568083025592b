import math

from models.enums import AvailabilityStatus, SpaceLifecycle
from models.parking_space import ParkingSpace
from utils.errors import NotFound


def paginate(q, page: int, limit: int):
    """Returns (items, pagination dict) for an already ordered query."""
    total = q.order_by(None).count()
    items = q.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def search_spaces(city=None, establishment=None, available_only=False, page=1, limit=10):
    q = ParkingSpace.query.filter(ParkingSpace.lifecycle == SpaceLifecycle.ACTIVE.value)

    if city:
        q = q.filter(ParkingSpace.city.ilike(f"%{city}%"))
    if establishment:
        q = q.filter(ParkingSpace.establishment_name.ilike(f"%{establishment}%"))
    if available_only:
        q = q.filter(
            ParkingSpace.availability_status == AvailabilityStatus.AVAILABLE.value,
            ParkingSpace.available_spaces > 0,
        )

    q = q.order_by(ParkingSpace.created_at.desc(), ParkingSpace.id.desc())
    return paginate(q, page, limit)


def get_space(space_id: int) -> ParkingSpace:
    space = ParkingSpace.query.filter_by(id=space_id, lifecycle=SpaceLifecycle.ACTIVE.value).first()
    if not space:
        raise NotFound("Parking space not found")
    return space
