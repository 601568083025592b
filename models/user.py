from datetime import datetime
from models.db import db

user_roles = db.Table(
    "user_roles",
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("roles.id"), primary_key=True),
)

class Role(db.Model):
    __tablename__ = "roles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)  # see security.rbac.ROLES

    users = db.relationship("User", secondary=user_roles, back_populates="roles")

class User(db.Model):
    """
    Local mirror of an account held by the identity provider.
    Credentials never reach this service; callers arrive with a bearer token.
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    roles = db.relationship("Role", secondary=user_roles, back_populates="users", lazy="selectin")
    vehicles = db.relationship("Vehicle", order_by="Vehicle.id")

    @property
    def role_names(self):
        return {r.name for r in self.roles}

    def has_role(self, name: str) -> bool:
        return name in self.role_names
