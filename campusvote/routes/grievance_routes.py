import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, status
from pymongo import ReturnDocument
from pymongo.database import Database

from campusvote.database.connection import get_db, grievances, to_object_id, users
from campusvote.dependencies import get_current_user, restrict_to
from campusvote.errors import Forbidden, InvalidState, NotFound
from campusvote.models.base import oid
from campusvote.models.grievance_model import Grievance, GrievanceStatus, Resolution
from campusvote.models.user_model import Role, User
from campusvote.schemas import GrievanceCreate, GrievanceStatusUpdate, ResolveRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/grievances", tags=["Grievances"])

STATUSES = {s.value for s in GrievanceStatus}


def _grievance_id(grievance_id: str) -> ObjectId:
    _id = to_object_id(grievance_id)
    if _id is None:
        raise NotFound("No grievance found with that ID")
    return _id


def _update(db: Database, grievance_id: str, changes: dict) -> Grievance:
    doc = grievances(db).find_one_and_update(
        {"_id": _grievance_id(grievance_id)}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not doc:
        raise NotFound("No grievance found with that ID")
    return Grievance.from_document(doc)


def check_grievance_access(
    grievance_id: str,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Grievance:
    """Only the submitter or an admin may see a grievance."""
    doc = grievances(db).find_one({"_id": _grievance_id(grievance_id)})
    if not doc:
        raise NotFound("Grievance not found")
    grievance = Grievance.from_document(doc)
    if user.role != Role.ADMIN and grievance.submitted_by != user.id:
        raise Forbidden("You do not have permission to access this grievance")
    return grievance


@router.get("/my")
def get_my_grievances(db: Database = Depends(get_db), user: User = Depends(get_current_user)):
    items = [Grievance.from_document(doc) for doc in grievances(db).find({"submitted_by": ObjectId(user.id)})]
    return {"results": len(items), "grievances": items}


@router.post("/", status_code=status.HTTP_201_CREATED)
def submit_grievance(data: GrievanceCreate, db: Database = Depends(get_db), user: User = Depends(get_current_user)):
    grievance = Grievance(**data.model_dump(), submitted_by=user.id)
    doc = grievance.model_dump(exclude={"id"})
    doc["election"] = oid(grievance.election)
    doc["submitted_by"] = ObjectId(user.id)
    result = grievances(db).insert_one(doc)
    grievance.id = str(result.inserted_id)
    return {"grievance": grievance}


@router.get("/{grievance_id}")
def get_grievance(grievance: Grievance = Depends(check_grievance_access)):
    return {"grievance": grievance}


# ADMIN HANDLERS

@router.get("/", dependencies=[Depends(restrict_to(Role.ADMIN))])
def get_all_grievances(db: Database = Depends(get_db)):
    items = [Grievance.from_document(doc) for doc in grievances(db).find()]
    return {"results": len(items), "grievances": items}


@router.patch("/{grievance_id}", dependencies=[Depends(restrict_to(Role.ADMIN))])
def update_grievance_status(grievance_id: str, data: GrievanceStatusUpdate, db: Database = Depends(get_db)):
    if data.status not in STATUSES:
        raise InvalidState("Invalid status value")
    changes = {"status": data.status}
    if data.assigned_to:
        assigned_to = to_object_id(data.assigned_to)
        if assigned_to is None or not users(db).find_one({"_id": assigned_to}):
            raise NotFound(f"User with ID {data.assigned_to} not found")
        changes["assigned_to"] = assigned_to
    return {"grievance": _update(db, grievance_id, changes)}


@router.post("/{grievance_id}/resolve")
def resolve_grievance(
    grievance_id: str,
    data: ResolveRequest,
    db: Database = Depends(get_db),
    admin: User = Depends(restrict_to(Role.ADMIN)),
):
    if not data.comment:
        raise InvalidState("Resolution comment is required")
    resolution = Resolution(comment=data.comment, resolved_by=admin.id).model_dump()
    resolution["resolved_by"] = ObjectId(admin.id)
    grievance = _update(db, grievance_id, {"status": GrievanceStatus.RESOLVED.value, "resolution": resolution})
    logger.info(f"Grievance {grievance_id} resolved by {admin.id}")
    return {"grievance": grievance}
