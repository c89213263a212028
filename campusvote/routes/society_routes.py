import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, Response, status
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from campusvote.database.connection import get_db, societies, to_object_id, users
from campusvote.dependencies import get_current_user, restrict_to
from campusvote.errors import Conflict, Forbidden, NotFound
from campusvote.models.base import utcnow
from campusvote.models.society_model import MemberRole, Society, SocietyMember
from campusvote.models.user_model import Role, User
from campusvote.schemas import SocietyCreate, SocietyMembersRequest, SocietyUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/societies", tags=["Societies"])


def _find_society(db: Database, society_id: str) -> Society:
    _id = to_object_id(society_id)
    doc = societies(db).find_one({"_id": _id}) if _id else None
    if not doc:
        raise NotFound("No society found with that ID")
    return Society.from_document(doc)


def _to_document(society: Society) -> dict:
    doc = society.model_dump(exclude={"id"})
    doc["members"] = [{**m, "user": ObjectId(m["user"])} for m in doc["members"]]
    doc["leads"] = [ObjectId(lead) for lead in society.leads]
    doc["created_by"] = ObjectId(society.created_by)
    return doc


def _save(db: Database, society: Society) -> None:
    societies(db).replace_one({"_id": ObjectId(society.id)}, _to_document(society))


def check_society_access(
    society_id: str,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Society:
    """Admin, a lead of the society, or a society-role user may modify it."""
    society = _find_society(db, society_id)
    if user.role == Role.ADMIN:
        return society
    if not society.is_lead(user.id) and user.role != Role.SOCIETY:
        raise Forbidden("You do not have permission to modify this society")
    return society


@router.get("/", dependencies=[Depends(get_current_user)])
def get_all_societies(db: Database = Depends(get_db)):
    items = [Society.from_document(doc) for doc in societies(db).find()]
    return {"results": len(items), "societies": items}


@router.get("/{society_id}", dependencies=[Depends(get_current_user)])
def get_society(society_id: str, db: Database = Depends(get_db)):
    return {"society": _find_society(db, society_id)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_society(data: SocietyCreate, db: Database = Depends(get_db), admin: User = Depends(restrict_to(Role.ADMIN))):
    fields = data.model_dump()
    # If leads aren't specified, make the creator a lead
    if not fields["leads"]:
        fields["leads"] = [admin.id]
    society = Society(**fields, created_by=admin.id)
    if admin.id not in {m.user for m in society.members}:
        society.members.append(SocietyMember(user=admin.id, role=MemberRole.LEAD))

    try:
        result = societies(db).insert_one(_to_document(society))
    except DuplicateKeyError:
        raise Conflict("A society with this name already exists")
    society.id = str(result.inserted_id)

    users(db).update_one({"_id": ObjectId(admin.id)}, {"$addToSet": {"society_ids": result.inserted_id}})
    logger.info(f"Society '{society.name}' created")
    return {"society": society}


@router.patch("/{society_id}")
def update_society(data: SocietyUpdate, society: Society = Depends(check_society_access), db: Database = Depends(get_db)):
    changes = data.model_dump(exclude_none=True)
    updated = society.model_copy(update={**changes, "updated_at": utcnow()})
    updated = Society.model_validate(updated.model_dump())
    try:
        _save(db, updated)
    except DuplicateKeyError:
        raise Conflict("A society with this name already exists")
    return {"society": updated}


@router.delete("/{society_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(restrict_to(Role.ADMIN))])
def delete_society(society_id: str, db: Database = Depends(get_db)):
    _id = to_object_id(society_id)
    result = societies(db).delete_one({"_id": _id}) if _id else None
    if result is None or result.deleted_count == 0:
        raise NotFound("No society found with that ID")
    users(db).update_many({"society_ids": _id}, {"$pull": {"society_ids": _id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{society_id}/members")
def add_members(
    data: SocietyMembersRequest,
    society: Society = Depends(check_society_access),
    db: Database = Depends(get_db),
):
    for member in data.members:
        _id = to_object_id(member.user_id)
        if _id is None or not users(db).find_one({"_id": _id, "active": {"$ne": False}}):
            raise NotFound(f"User with ID {member.user_id} not found")

    for member in data.members:
        role = MemberRole(member.role).value
        existing = next((m for m in society.members if m.user == member.user_id), None)
        if existing is not None:
            existing.role = role
        else:
            society.members.append(SocietyMember(user=member.user_id, role=role))
            users(db).update_one({"_id": ObjectId(member.user_id)}, {"$addToSet": {"society_ids": ObjectId(society.id)}})

        # Keep the leads list in step with member roles
        if role == MemberRole.LEAD.value:
            if member.user_id not in society.leads:
                society.leads.append(member.user_id)
        else:
            society.leads = [lead for lead in society.leads if lead != member.user_id]

    _save(db, society)
    return {"society": society}


@router.delete("/{society_id}/members/{user_id}")
def remove_member(user_id: str, society: Society = Depends(check_society_access), db: Database = Depends(get_db)):
    society.members = [m for m in society.members if m.user != user_id]
    society.leads = [lead for lead in society.leads if lead != user_id]
    _save(db, society)

    _id = to_object_id(user_id)
    if _id is not None:
        users(db).update_one({"_id": _id}, {"$pull": {"society_ids": ObjectId(society.id)}})
    return {"society": society}
