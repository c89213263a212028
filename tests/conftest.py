from datetime import timedelta

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from campusvote.database.connection import elections, ensure_indexes, users
from campusvote.main import app
from campusvote.models.base import utcnow
from campusvote.models.election_model import Candidate, Election, Position
from campusvote.security import create_access_token, hash_password


@pytest.fixture
def db():
    database = mongomock.MongoClient()["campusvote_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.state.db = db
    yield TestClient(app)
    app.state.db = None


@pytest.fixture
def make_user(db):
    counter = iter(range(1, 10_000))

    def _make(role="user", house_id=None, society_ids=(), email=None, password=None, name=None):
        n = next(counter)
        user_id = ObjectId()
        users(db).insert_one({
            "_id": user_id,
            "name": name or f"User {n}",
            "email": email or f"user{n}@uni.ac.in",
            "password": hash_password(password) if password else "!",
            "student_id": f"S{n:05d}",
            "role": role,
            "house_id": ObjectId(house_id) if house_id else None,
            "society_ids": [ObjectId(s) for s in society_ids],
            "active": True,
            "created_at": utcnow(),
        })
        return str(user_id)

    return _make


@pytest.fixture
def make_election(db):
    def _make(
        status="active",
        positions=None,
        type="university",
        created_by=None,
        nomination_start=None,
        nomination_end=None,
        voting_start=None,
        voting_end=None,
        **extra,
    ):
        now = utcnow().replace(microsecond=0)
        voting_start = voting_start or now - timedelta(hours=1)
        voting_end = voting_end or voting_start + timedelta(hours=2)
        nomination_end = nomination_end or voting_start - timedelta(days=1)
        nomination_start = nomination_start or nomination_end - timedelta(days=1)
        election = Election(
            title="Student Council",
            type=type,
            status=status,
            positions=positions or [],
            nomination_start=nomination_start,
            nomination_end=nomination_end,
            voting_start=voting_start,
            voting_end=voting_end,
            created_by=created_by or str(ObjectId()),
            **extra,
        )
        result = elections(db).insert_one(election.to_document())
        election.id = str(result.inserted_id)
        return election

    return _make


@pytest.fixture
def secretary_race(make_user, make_election):
    """Active election with approved candidates A and B and unapproved C for 'Secretary'."""
    a = make_user(name="Asha")
    b = make_user(name="Bilal")
    c = make_user(name="Chen")
    position = Position(
        title="Secretary",
        candidates=[
            Candidate(user=a, approved=True),
            Candidate(user=b, approved=True),
            Candidate(user=c, approved=False),
        ],
    )
    election = make_election(positions=[position])
    return election, a, b, c


def auth(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def headers():
    return auth
