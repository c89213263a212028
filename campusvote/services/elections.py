import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import ValidationError
from pymongo.database import Database

from campusvote.crud import user_summaries
from campusvote.database.connection import elections, to_object_id
from campusvote.errors import Forbidden, InvalidState, NotFound
from campusvote.models.base import naive_utc, utcnow
from campusvote.models.election_model import (
    Candidate,
    Election,
    ElectionStatus,
    ElectionType,
    Position,
)
from campusvote.models.user_model import Role, User
from campusvote.schemas import ElectionCreate, ElectionUpdate, PositionIn
from campusvote.services.ballot import load_election

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(err["msg"].removeprefix("Value error, ") for err in exc.errors())


def _build(data: Dict[str, Any]) -> Election:
    try:
        return Election.model_validate(data)
    except ValidationError as exc:
        raise InvalidState(_validation_message(exc))


def _save(db: Database, election: Election) -> Election:
    elections(db).replace_one({"_id": ObjectId(election.id)}, election.to_document())
    return election


def can_manage(user: User, election: Election) -> bool:
    """Admin, the creator, or the owning house/society role may modify an election."""
    if user.role == Role.ADMIN or election.created_by == user.id:
        return True
    if election.type == ElectionType.HOUSE and user.role == Role.HOUSE:
        return user.house_id is not None and user.house_id == election.house
    if election.type == ElectionType.SOCIETY and user.role == Role.SOCIETY:
        return election.society in user.society_ids
    return False


def get_managed_election(db: Database, election_id: str, user: User) -> Election:
    election = load_election(db, election_id)
    if not can_manage(user, election):
        raise Forbidden("You do not have permission to modify this election")
    return election


def list_elections(
    db: Database,
    status: Optional[str] = None,
    type: Optional[str] = None,
    house: Optional[str] = None,
    society: Optional[str] = None,
) -> List[Election]:
    query: Dict[str, Any] = {}
    if status:
        query["status"] = status
    if type:
        query["type"] = type
    for field, value in (("house", house), ("society", society)):
        if value:
            _id = to_object_id(value)
            if _id is None:
                return []
            query[field] = _id
    return [Election.from_document(doc) for doc in elections(db).find(query)]


def create_election(db: Database, data: ElectionCreate, user: User) -> Election:
    if data.type == ElectionType.HOUSE and not data.house:
        raise InvalidState("House elections must specify a house")
    if data.type == ElectionType.SOCIETY and not data.society:
        raise InvalidState("Society elections must specify a society")

    if user.role != Role.ADMIN:
        if data.type == ElectionType.HOUSE and user.role == Role.HOUSE:
            if user.house_id is None or user.house_id != data.house:
                raise Forbidden("You can only create elections for your own house")
        elif data.type == ElectionType.SOCIETY and user.role == Role.SOCIETY:
            if data.society not in user.society_ids:
                raise Forbidden("You can only create elections for societies you are a lead of")
        elif data.type == ElectionType.UNIVERSITY:
            raise Forbidden("Only administrators can create university-wide elections")
        else:
            raise Forbidden()

    fields = data.model_dump(exclude={"positions"})
    fields["positions"] = [Position(title=p.title, description=p.description) for p in data.positions]
    fields["created_by"] = user.id
    fields["status"] = ElectionStatus.DRAFT
    election = _build(fields)

    result = elections(db).insert_one(election.to_document())
    election.id = str(result.inserted_id)
    logger.info(f"Election {election.id} ({election.type}) created by {user.id}")
    return election


def update_election(db: Database, election: Election, data: ElectionUpdate) -> Election:
    changes = data.model_dump(exclude_none=True)
    if election.status == ElectionStatus.COMPLETED and "status" in changes:
        raise InvalidState("Cannot update a completed election")

    merged = election.model_dump()
    merged.update(changes)
    merged["updated_at"] = utcnow()
    updated = _build(merged)
    result = elections(db).replace_one({"_id": ObjectId(election.id)}, updated.to_document())
    if result.matched_count == 0:
        raise NotFound("Election not found")
    return updated


def delete_election(db: Database, election: Election) -> None:
    if election.status in (ElectionStatus.ACTIVE, ElectionStatus.COMPLETED):
        raise InvalidState("Cannot delete an active or completed election")
    elections(db).delete_one({"_id": ObjectId(election.id)})
    logger.info(f"Election {election.id} deleted")


def add_position(db: Database, election: Election, data: PositionIn) -> Election:
    if election.status != ElectionStatus.DRAFT:
        raise InvalidState("Can only add positions to elections in draft status")
    if election.find_position(data.title) is not None:
        raise InvalidState("A position with this title already exists")

    election.positions.append(Position(title=data.title, description=data.description))
    return _save(db, election)


def submit_nomination(
    db: Database,
    election_id: str,
    position_title: str,
    manifesto: str,
    user: User,
    now: Optional[datetime] = None,
) -> Election:
    now = naive_utc(now) if now is not None else utcnow()
    election = load_election(db, election_id)

    if not election.nomination_window_open(now):
        raise InvalidState("Nomination period is not active")

    position = election.find_position(position_title)
    if position is None:
        raise NotFound("Position not found in this election")

    if position.find_candidate(user.id) is not None:
        raise InvalidState("You have already nominated yourself for this position")

    position.candidates.append(Candidate(user=user.id, manifesto=manifesto, nominated_at=now))
    _save(db, election)
    logger.info(f"Nomination by {user.id} for '{position.title}' in election {election.id}")
    return election


def approve_nomination(
    db: Database,
    election_id: str,
    position_title: str,
    candidate_id: str,
    approver: User,
) -> Election:
    election = load_election(db, election_id)

    position = election.find_position(position_title)
    if position is None:
        raise NotFound("Position not found in this election")

    candidate = position.find_candidate(candidate_id)
    if candidate is None:
        raise NotFound("Candidate not found for this position")

    candidate.approved = True
    candidate.approved_by = approver.id
    candidate.approved_at = utcnow()
    _save(db, election)
    logger.info(f"Candidate {candidate_id} approved for '{position.title}' in election {election.id}")
    return election


def present(db: Database, election: Election) -> Dict[str, Any]:
    """JSON-ready election with candidate user details filled in."""
    data = election.model_dump(mode="json")
    user_ids = {c.user for p in election.positions for c in p.candidates}
    info = user_summaries(db, user_ids) if user_ids else {}
    for position in data["positions"]:
        for candidate in position["candidates"]:
            candidate["user"] = {"id": candidate["user"], **info.get(candidate["user"], {})}
    return data
