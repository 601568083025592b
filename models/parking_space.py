from datetime import datetime
from models.db import db
from models.enums import AvailabilityStatus, SpaceLifecycle

class ParkingSpace(db.Model):
    __tablename__ = "parking_spaces"

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    city = db.Column(db.String(120), nullable=False, index=True)
    establishment_name = db.Column(db.String(160), nullable=False)
    address = db.Column(db.String(255), nullable=False)

    # capacity fields only change through services.capacity_ledger
    total_spaces = db.Column(db.Integer, nullable=False)
    available_spaces = db.Column(db.Integer, nullable=False)

    hourly_rate = db.Column(db.Numeric(10, 2), nullable=False)
    whole_day_rate = db.Column(db.Numeric(10, 2), nullable=False)

    # operator setting: available or closed
    availability_status = db.Column(db.String(20), nullable=False, default=AvailabilityStatus.AVAILABLE.value)
    lifecycle = db.Column(db.String(20), nullable=False, default=SpaceLifecycle.ACTIVE.value, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("total_spaces > 0", name="ck_parking_spaces_total_positive"),
        db.CheckConstraint(
            "available_spaces >= 0 AND available_spaces <= total_spaces",
            name="ck_parking_spaces_available_in_range",
        ),
    )

    @property
    def is_deleted(self):
        return self.lifecycle == SpaceLifecycle.DELETED.value
