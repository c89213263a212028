"""Ballot integrity: decides whether a vote may be stored, and stores it.

Checks run in a fixed order and the first failure wins. Election status and
the voting window are independent gates; both must hold.

One vote per (election, position, voter) is enforced by the unique index on
the votes collection, not by a prior read, so concurrent duplicate
submissions cannot both succeed.
"""

import hashlib
import logging
from datetime import datetime
from typing import Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from campusvote.database.connection import elections, to_object_id, votes
from campusvote.errors import Conflict, InvalidState, NotFound
from campusvote.models.base import naive_utc, utcnow
from campusvote.models.election_model import Election, ElectionStatus
from campusvote.models.vote_model import Vote, VoteOut

logger = logging.getLogger(__name__)


def client_fingerprint(client_ip: Optional[str], user_agent: Optional[str]) -> str:
    """Opaque hash of network origin and client signature, kept for fraud review."""
    data = f"{client_ip}-{user_agent}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def load_election(db: Database, election_id: str) -> Election:
    _id = to_object_id(election_id)
    doc = elections(db).find_one({"_id": _id}) if _id else None
    if not doc:
        raise NotFound("Election not found")
    return Election.from_document(doc)


def cast_vote(
    db: Database,
    election_id: str,
    position_title: str,
    candidate_id: str,
    voter_id: str,
    client_hash: str,
    now: Optional[datetime] = None,
) -> VoteOut:
    """Persist exactly one vote or raise; never leaves partial state."""
    now = naive_utc(now) if now is not None else utcnow()

    election = load_election(db, election_id)

    if election.status != ElectionStatus.ACTIVE:
        raise InvalidState("Voting is not currently active for this election")

    if not election.voting_window_open(now):
        raise InvalidState("Voting period is not active")

    position = election.find_position(position_title)
    if position is None:
        raise InvalidState("Invalid position")

    candidate = position.find_candidate(candidate_id)
    if candidate is None or not candidate.approved:
        raise InvalidState("Invalid or unapproved candidate")

    vote = Vote(
        election=election.id,
        position=position.title,
        candidate=candidate.user,
        voter=voter_id,
        timestamp=now,
        client_hash=client_hash,
    )
    doc = vote.to_document()
    try:
        result = votes(db).insert_one(doc)
    except DuplicateKeyError:
        logger.warning(f"Duplicate vote rejected for election {election.id}, position '{position.title}'")
        raise Conflict("You have already voted for this position in this election")

    doc["_id"] = result.inserted_id
    logger.info(f"Vote recorded for election {election.id}, position '{position.title}'")
    return VoteOut.from_document(doc)
