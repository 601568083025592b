from functools import wraps
from flask import g, jsonify
from security.tokens import token_from_request

def load_current_user():
    """Resolve the bearer token into g.user; anything unusable leaves g.user as None."""
    g.user = None
    g.token = None

    token = token_from_request()
    if token is None or not token.user.is_active:
        return
    g.token = token
    g.user = token.user

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if g.get("user") is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
