import logging
from models import db
from models.user import Role
from security.rbac import ROLES

logger = logging.getLogger(__name__)

def seed_roles():
    """Insert whichever role rows are missing. Safe to run on every start."""
    present = set(db.session.scalars(db.select(Role.name)))
    missing = [name for name in ROLES if name not in present]
    if not missing:
        return []
    db.session.add_all([Role(name=name) for name in missing])
    db.session.commit()
    logger.info("seeded roles: %s", ", ".join(missing))
    return missing
