from datetime import datetime
from models.db import db

class Vehicle(db.Model):
    __tablename__ = "vehicles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    vehicle_type = db.Column(db.String(40), nullable=False)
    year_make_model = db.Column(db.String(120), nullable=False)
    color = db.Column(db.String(40), nullable=True)
    plate_number = db.Column(db.String(20), unique=True, nullable=False, index=True)  # stored upper-cased

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
