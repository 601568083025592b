from datetime import datetime
from models.db import db
from models.enums import ReservationStatus

class Reservation(db.Model):
    __tablename__ = "reservations"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    parking_space_id = db.Column(db.Integer, db.ForeignKey("parking_spaces.id"), nullable=False, index=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id"), nullable=False, index=True)

    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False, index=True)
    reservation_type = db.Column(db.String(20), nullable=False)  # hourly, whole_day

    # rates copied from the space at booking time
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=False)
    whole_day_rate = db.Column(db.Numeric(10, 2), nullable=False)

    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)
    discount_note = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=ReservationStatus.PENDING.value, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    parking_space = db.relationship("ParkingSpace", lazy="joined")
    vehicle = db.relationship("Vehicle", lazy="joined")
    user = db.relationship("User", lazy="joined")

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_reservations_time_order"),
        db.CheckConstraint("discount >= 0 AND tax >= 0 AND total_price >= 0", name="ck_reservations_amounts"),
    )
