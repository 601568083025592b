from datetime import datetime
from models.db import db
from models.enums import PaymentStatus

class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    # one payment per reservation
    reservation_id = db.Column(db.Integer, db.ForeignKey("reservations.id"), nullable=False, unique=True, index=True)

    payment_method = db.Column(db.String(30), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING.value)
    receipt_number = db.Column(db.String(64), nullable=False, unique=True, index=True)

    payment_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    reservation = db.relationship("Reservation", lazy="joined")
