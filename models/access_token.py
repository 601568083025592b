from datetime import datetime
from models.db import db

class AccessToken(db.Model):
    """Bearer credential handed out by `flask issue-token`. Only the SHA-256 digest is kept."""
    __tablename__ = "access_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    token_digest = db.Column(db.String(64), unique=True, nullable=False, index=True)
    label = db.Column(db.String(80), nullable=True)

    issued_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    revoked_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", lazy="joined")

    def is_live(self, now=None) -> bool:
        now = now or datetime.utcnow()
        return self.revoked_at is None and self.expires_at > now
