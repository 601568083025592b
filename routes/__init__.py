from .health import health_bp
from .parking_spaces import parking_spaces_bp
from .reservations import reservations_bp
from .payments import payments_bp
