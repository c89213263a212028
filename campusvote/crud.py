import logging
from typing import Any, Dict, List

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from campusvote import config
from campusvote.database.connection import to_object_id, users
from campusvote.errors import Conflict, InvalidState, NotFound, Unauthorized
from campusvote.models.base import oid, oids, utcnow
from campusvote.models.user_model import Role, User
from campusvote.schemas import SignupRequest, UpdateMeRequest, UserUpdateRequest
from campusvote.security import hash_password, verify_password

logger = logging.getLogger(__name__)

ACTIVE = {"active": {"$ne": False}}


# Create a new user with hashed password
def create_user(db: Database, data: SignupRequest, role: Role = Role.USER) -> User:
    user = data.model_dump()
    user["email"] = user["email"].lower()
    user["password"] = hash_password(user["password"])
    user.update({
        "role": role.value,
        "house_id": None,
        "society_ids": [],
        "active": True,
        "created_at": utcnow(),
    })
    try:
        result = users(db).insert_one(user)
    except DuplicateKeyError:
        logger.warning(f"Signup rejected, email or student id already registered: {user['email']}")
        raise Conflict("A user with this email or student ID already exists")
    user["_id"] = result.inserted_id
    return User.from_document(user)


def get_user(db: Database, user_id: str) -> User:
    _id = to_object_id(user_id)
    doc = users(db).find_one({"_id": _id, **ACTIVE}) if _id else None
    if not doc:
        raise NotFound("No user found with that ID")
    return User.from_document(doc)


def list_users(db: Database) -> List[User]:
    return [User.from_document(doc) for doc in users(db).find(ACTIVE)]


# Log in a user; the configured admin e-mail is promoted to admin on the way in
def login_user(db: Database, email: str, password: str) -> User:
    doc = users(db).find_one({"email": email.lower(), **ACTIVE})
    if not doc or not verify_password(password, doc["password"]):
        raise Unauthorized("Incorrect email or password")

    if doc["email"] == config.ADMIN_EMAIL.lower() and doc.get("role") != Role.ADMIN.value:
        users(db).update_one({"_id": doc["_id"]}, {"$set": {"role": Role.ADMIN.value}})
        doc["role"] = Role.ADMIN.value
        logger.info(f"Promoted {doc['email']} to admin")
    return User.from_document(doc)


# Login admin
def login_admin(db: Database, email: str, password: str) -> User:
    if email.lower() != config.ADMIN_EMAIL.lower():
        raise Unauthorized("Invalid credentials")

    doc = users(db).find_one({"email": email.lower(), "role": Role.ADMIN.value, **ACTIVE})
    if not doc:
        logger.warning(f"Admin user not found for email: {email}")
        raise Unauthorized("Admin user not found")

    if not verify_password(password, doc["password"]):
        raise Unauthorized("Invalid password")
    return User.from_document(doc)


def update_password(db: Database, user: User, current_password: str, new_password: str) -> User:
    doc = users(db).find_one({"_id": oid(user.id)})
    if not doc or not verify_password(current_password, doc["password"]):
        raise Unauthorized("Your current password is incorrect")

    now = utcnow()
    # Tokens issued in the same second as the change stay valid.
    changed_at = now.replace(microsecond=0)
    updated = users(db).find_one_and_update(
        {"_id": doc["_id"]},
        {"$set": {"password": hash_password(new_password), "password_changed_at": changed_at, "updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    return User.from_document(updated)


def update_me(db: Database, user: User, data: UpdateMeRequest) -> User:
    if data.password is not None:
        raise InvalidState("This route is not for password updates. Please use /update-password.")
    changes = data.model_dump(include={"name", "email"}, exclude_none=True)
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    return _apply_user_update(db, user.id, changes)


def update_user(db: Database, user_id: str, data: UserUpdateRequest) -> User:
    changes = data.model_dump(exclude_none=True)
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    if "role" in changes:
        changes["role"] = Role(changes["role"]).value
    if "house_id" in changes:
        changes["house_id"] = _require_id(changes["house_id"], "house")
    if "society_ids" in changes:
        changes["society_ids"] = [_require_id(s, "society") for s in changes["society_ids"]]
    return _apply_user_update(db, user_id, changes)


def deactivate_user(db: Database, user_id: str) -> None:
    _id = to_object_id(user_id)
    result = users(db).update_one({"_id": _id, **ACTIVE}, {"$set": {"active": False, "updated_at": utcnow()}}) if _id else None
    if result is None or result.matched_count == 0:
        raise NotFound("No user found with that ID")


def _apply_user_update(db: Database, user_id: str, changes: Dict[str, Any]) -> User:
    _id = to_object_id(user_id)
    if _id is None:
        raise NotFound("No user found with that ID")
    changes["updated_at"] = utcnow()
    try:
        doc = users(db).find_one_and_update(
            {"_id": _id, **ACTIVE}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise Conflict("A user with this email or student ID already exists")
    if not doc:
        raise NotFound("No user found with that ID")
    return User.from_document(doc)


def _require_id(value: str, what: str):
    _id = to_object_id(value)
    if _id is None:
        raise NotFound(f"No {what} found with ID {value}")
    return _id


def user_summaries(db: Database, user_ids) -> Dict[str, Dict[str, Any]]:
    """Map user id -> {name, email, student_id} for display purposes."""
    docs = users(db).find({"_id": {"$in": oids(user_ids)}}, {"name": 1, "email": 1, "student_id": 1})
    return {
        str(doc["_id"]): {"name": doc.get("name"), "email": doc.get("email"), "student_id": doc.get("student_id")}
        for doc in docs
    }
