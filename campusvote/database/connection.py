import logging
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from campusvote.config import (
    ELECTIONS_COLLECTION,
    GRIEVANCES_COLLECTION,
    HOUSES_COLLECTION,
    MONGO_DB,
    MONGO_URI,
    SOCIETIES_COLLECTION,
    USERS_COLLECTION,
    VOTES_COLLECTION,
)

logger = logging.getLogger(__name__)


class MongoConnector:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(MongoConnector, cls).__new__(cls)
            try:
                cls._instance.client = MongoClient(MONGO_URI)
                cls._instance.db = cls._instance.client[MONGO_DB]
                cls._instance.client.server_info()
                ensure_indexes(cls._instance.db)
                logger.info(f"Connected to MongoDB: {MONGO_DB}")
            except Exception as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                cls._instance = None
                raise
        return cls._instance


def ensure_indexes(db: Database) -> None:
    """Create the unique indexes every collection relies on."""
    db[USERS_COLLECTION].create_index("email", unique=True)
    db[USERS_COLLECTION].create_index("student_id", unique=True, sparse=True)
    db[HOUSES_COLLECTION].create_index("name", unique=True)
    db[SOCIETIES_COLLECTION].create_index("name", unique=True)
    # One counted vote per (voter, election, position); the insert is the check.
    db[VOTES_COLLECTION].create_index(
        [("election", ASCENDING), ("position", ASCENDING), ("voter", ASCENDING)],
        unique=True,
    )


def get_db(request: Request) -> Database:
    """Dependency returning the database handle stored on app state."""
    return request.app.state.db


def users(db: Database):
    return db[USERS_COLLECTION]


def houses(db: Database):
    return db[HOUSES_COLLECTION]


def societies(db: Database):
    return db[SOCIETIES_COLLECTION]


def elections(db: Database):
    return db[ELECTIONS_COLLECTION]


def votes(db: Database):
    return db[VOTES_COLLECTION]


def grievances(db: Database):
    return db[GRIEVANCES_COLLECTION]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id string; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None
