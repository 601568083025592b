import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

def _env_int(name, default):
    return int(os.getenv(name, str(default)))

def _env_flag(name, default):
    return os.getenv(name, "true" if default else "false").lower() in ("1", "true", "yes")

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")
    DEBUG = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # parkslot.db next to this file unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "parkslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # lifetime of tokens printed by `flask issue-token`
    SESSION_LIFETIME_SECONDS = _env_int("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    DEFAULT_PAGE_LIMIT = _env_int("DEFAULT_PAGE_LIMIT", 10)
    MAX_PAGE_LIMIT = _env_int("MAX_PAGE_LIMIT", 100)

    # settled on the spot, no gateway round trip
    PAYMENT_METHODS = ("card", "cash", "gcash", "paymaya", "bank_transfer")

    # needs the schema in place (`flask db upgrade`)
    SEED_ROLES_ON_STARTUP = _env_flag("SEED_ROLES_ON_STARTUP", True)
