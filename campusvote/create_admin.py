"""Seed the admin account named by ADMIN_EMAIL / ADMIN_PASSWORD."""

import logging

from pymongo.database import Database

from campusvote import config
from campusvote.database.connection import MongoConnector, users
from campusvote.models.base import utcnow
from campusvote.models.user_model import Role
from campusvote.security import hash_password

logger = logging.getLogger(__name__)


def create_admin(db: Database, email: str, password: str, name: str = "Admin", student_id: str = "ADMIN001") -> bool:
    """Create the admin user; returns False when the account already exists."""
    email = email.lower()
    if users(db).find_one({"email": email}):
        logger.info(f"Admin already exists: {email}")
        return False

    users(db).insert_one({
        "name": name,
        "email": email,
        "password": hash_password(password),
        "student_id": student_id,
        "role": Role.ADMIN.value,
        "house_id": None,
        "society_ids": [],
        "active": True,
        "created_at": utcnow(),
    })
    logger.info(f"Admin user created: {email}")
    return True


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL)
    if not config.ADMIN_PASSWORD:
        raise SystemExit("ADMIN_PASSWORD is not set. Check your .env file.")
    create_admin(MongoConnector().db, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)


if __name__ == "__main__":
    main()
