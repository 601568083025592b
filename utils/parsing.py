from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from flask import current_app, request

from utils.errors import ValidationError


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def parse_iso(value, field: str) -> datetime:
    # Expect ISO format like "2026-01-20T18:00:00"; aware values are stored as naive UTC
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use ISO e.g. 2026-01-20T18:00:00")
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_int(value, field: str, minimum=None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return number


def parse_money(value, field: str) -> Decimal:
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field} must be a positive number")
    return amount


def parse_bool(value) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes")


def page_args():
    """Reads ?page=&limit= from the query string."""
    default_limit = current_app.config.get("DEFAULT_PAGE_LIMIT", 10)
    max_limit = current_app.config.get("MAX_PAGE_LIMIT", 100)

    page = parse_int(request.args.get("page", 1), "page", minimum=1)
    limit = parse_int(request.args.get("limit", default_limit), "limit", minimum=1)
    if limit > max_limit:
        raise ValidationError(f"limit must be at most {max_limit}")
    return page, limit
