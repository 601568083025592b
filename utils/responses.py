from flask import jsonify


def ok(message: str, data=None, pagination=None, status: int = 200):
    """Success envelope: {message, data, pagination?}."""
    body = {"message": message, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


def iso(value):
    return value.isoformat() if value else None


def money(value):
    # two-place string keeps Decimal exact on the wire
    return None if value is None else f"{value:.2f}"
