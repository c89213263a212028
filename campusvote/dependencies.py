"""FastAPI dependencies shared by the route modules."""

from fastapi import Depends, Request
from pymongo.database import Database

from campusvote.database.connection import get_db, to_object_id, users
from campusvote.errors import Forbidden, Unauthorized
from campusvote.models.user_model import Role, User
from campusvote.security import decode_token


def get_current_user(request: Request, db: Database = Depends(get_db)) -> User:
    """Resolve the caller from the Bearer token.

    Rejects missing or invalid tokens, users that no longer exist or were
    deactivated, and tokens issued before the last password change.
    """
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        raise Unauthorized("You are not logged in. Please log in to get access.")

    payload = decode_token(auth_header[len("Bearer "):], expected_type="access")

    _id = to_object_id(payload["sub"])
    doc = users(db).find_one({"_id": _id, "active": {"$ne": False}}) if _id else None
    if not doc:
        raise Unauthorized("The user belonging to this token no longer exists.")

    user = User.from_document(doc)
    if user.changed_password_after(payload.get("iat", 0)):
        raise Unauthorized("User recently changed password. Please log in again.")
    return user


def restrict_to(*roles: Role):
    """Dependency factory allowing only the given roles through."""
    allowed = {Role(r).value for r in roles}

    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise Forbidden()
        return user

    return checker
