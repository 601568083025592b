import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes import health_bp, parking_spaces_bp, reservations_bp, payments_bp
from utils.auth_context import load_current_user
from utils.errors import ApiError
from utils.seed import seed_roles

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(parking_spaces_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(payments_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles at startup (safe & idempotent)
    if app.config.get("SEED_ROLES_ON_STARTUP"):
        with app.app_context():
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    register_error_handlers(app)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    logging.getLogger().setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(exc):
        return jsonify(error=exc.message), exc.status_code

    @app.errorhandler(IntegrityError)
    def _integrity_error(exc):
        db.session.rollback()
        logger.warning("constraint violation: %s", exc.orig)
        return jsonify(error="Resource conflicts with an existing record"), 409

    @app.errorhandler(SQLAlchemyError)
    def _db_error(exc):
        db.session.rollback()
        logger.exception("database failure")
        return jsonify(error="Internal server error"), 500

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return jsonify(error=exc.description), exc.code

#-------------------------
import click

from models.user import User, Role
from security.rbac import ROLES
from security.tokens import issue_token, revoke_tokens
from services import reservations

def _find_user(email):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException("User not found")
    return user

def register_cli(app):
    @app.cli.command("create-user")
    @click.argument("email")
    @click.option("--role", "role_name", default="DRIVER", show_default=True,
                  type=click.Choice(ROLES, case_sensitive=False))
    @click.option("--first-name", default=None)
    @click.option("--last-name", default=None)
    def create_user(email, role_name, first_name, last_name):
        """Create a user (or add a role to an existing one)."""
        email = email.strip().lower()
        role_name = role_name.upper()

        role = Role.query.filter_by(name=role_name).first()
        if not role:
            role = Role(name=role_name)
            db.session.add(role)

        user = User.query.filter_by(email=email).first()
        if not user:
            user = User(email=email, first_name=first_name, last_name=last_name)
            db.session.add(user)

        if role not in user.roles:
            user.roles.append(role)
        db.session.commit()

        click.echo(f"{user.email} has roles {', '.join(sorted(user.role_names))}")

    @app.cli.command("issue-token")
    @click.argument("email")
    @click.option("--label", default=None, help="Note stored with the token, e.g. the device it was issued for.")
    @click.option("--hours", type=click.IntRange(min=1), default=None,
                  help="Lifetime; defaults to SESSION_LIFETIME_SECONDS.")
    def issue_token_command(email, label, hours):
        """Print a bearer token for a user (bootstrap / testing)."""
        user = _find_user(email)
        lifetime = hours * 3600 if hours else None
        click.echo(issue_token(user.id, label=label, lifetime_seconds=lifetime))

    @app.cli.command("revoke-tokens")
    @click.argument("email")
    def revoke_tokens_command(email):
        """Revoke every live bearer token of a user."""
        user = _find_user(email)
        count = revoke_tokens(user.id)
        click.echo(f"Revoked {count} token(s) for {user.email}")

    @app.cli.command("advance-reservations")
    def advance_reservations():
        """Move due reservations paid -> active -> completed."""
        counts = reservations.advance_by_clock()
        click.echo(f"started={counts['started']} completed={counts['completed']}")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
