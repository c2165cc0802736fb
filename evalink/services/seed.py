from flask import current_app
from werkzeug.security import generate_password_hash

from ..extensions import db
from ..logger import get_logger
from ..models import User

logger = get_logger("seed")


def create_admin_if_missing():
    """Create the default administrator account; safe to run on every start."""
    email = current_app.config["DEFAULT_ADMIN_EMAIL"]
    if User.query.filter_by(email=email).first():
        logger.info("Admin user '%s' already exists. Skipping creation.", email)
        return False

    logger.info("Admin user '%s' not found. Creating...", email)
    admin = User(
        id=email,
        name=current_app.config["DEFAULT_ADMIN_NAME"],
        email=email,
        role="admin",
        password_hash=generate_password_hash(current_app.config["DEFAULT_ADMIN_PASSWORD"]),
    )
    db.session.add(admin)
    db.session.commit()
    logger.info("Admin user '%s' created.", email)
    return True
