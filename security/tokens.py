import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app
from sqlalchemy import update

from models import db
from models.access_token import AccessToken

BEARER_PREFIX = "Bearer "

def digest(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()

def issue_token(user_id: int, label=None, lifetime_seconds=None) -> str:
    """
    Store a new token for the user and return the raw value.
    The raw value is never persisted, so it cannot be shown again.
    """
    raw_token = secrets.token_urlsafe(32)
    lifetime = lifetime_seconds or current_app.config["SESSION_LIFETIME_SECONDS"]

    db.session.add(AccessToken(
        user_id=user_id,
        token_digest=digest(raw_token),
        label=label,
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
    ))
    db.session.commit()
    return raw_token

def bearer_from_request():
    header = request.headers.get("Authorization") or ""
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None

def token_from_request():
    raw_token = bearer_from_request()
    if not raw_token:
        return None

    token = AccessToken.query.filter_by(token_digest=digest(raw_token)).first()
    if token is None or not token.is_live():
        return None
    return token

def revoke_tokens(user_id: int) -> int:
    result = db.session.execute(
        update(AccessToken)
        .where(AccessToken.user_id == user_id, AccessToken.revoked_at.is_(None))
        .values(revoked_at=datetime.utcnow())
    )
    db.session.commit()
    return result.rowcount
