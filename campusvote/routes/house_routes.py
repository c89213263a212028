import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, Response, status
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from campusvote.database.connection import get_db, houses, to_object_id, users
from campusvote.dependencies import get_current_user, restrict_to
from campusvote.errors import Conflict, NotFound
from campusvote.models.base import oids, utcnow
from campusvote.models.house_model import House
from campusvote.models.user_model import Role, User
from campusvote.schemas import HouseCreate, HouseMembersRequest, HouseUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/houses", tags=["Houses"])


def _house_id(house_id: str) -> ObjectId:
    _id = to_object_id(house_id)
    if _id is None:
        raise NotFound("No house found with that ID")
    return _id


def _find_house(db: Database, house_id: str) -> dict:
    doc = houses(db).find_one({"_id": _house_id(house_id)})
    if not doc:
        raise NotFound("No house found with that ID")
    return doc


@router.get("/", dependencies=[Depends(get_current_user)])
def get_all_houses(db: Database = Depends(get_db)):
    items = [House.from_document(doc) for doc in houses(db).find()]
    return {"results": len(items), "houses": items}


@router.get("/{house_id}", dependencies=[Depends(get_current_user)])
def get_house(house_id: str, db: Database = Depends(get_db)):
    return {"house": House.from_document(_find_house(db, house_id))}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_house(data: HouseCreate, db: Database = Depends(get_db), admin: User = Depends(restrict_to(Role.ADMIN))):
    house = House(**data.model_dump(), created_by=admin.id)
    doc = house.model_dump(exclude={"id"})
    doc["secretaries"] = oids(house.secretaries)
    doc["created_by"] = ObjectId(admin.id)
    try:
        result = houses(db).insert_one(doc)
    except DuplicateKeyError:
        raise Conflict("A house with this name already exists")
    house.id = str(result.inserted_id)
    logger.info(f"House '{house.name}' created")
    return {"house": house}


@router.patch("/{house_id}", dependencies=[Depends(restrict_to(Role.ADMIN))])
def update_house(house_id: str, data: HouseUpdate, db: Database = Depends(get_db)):
    changes = data.model_dump(exclude_none=True)
    if "secretaries" in changes:
        changes["secretaries"] = [ObjectId(s) for s in changes["secretaries"] if ObjectId.is_valid(s)]
    changes["updated_at"] = utcnow()
    try:
        doc = houses(db).find_one_and_update(
            {"_id": _house_id(house_id)}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise Conflict("A house with this name already exists")
    if not doc:
        raise NotFound("No house found with that ID")
    return {"house": House.from_document(doc)}


@router.delete("/{house_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(restrict_to(Role.ADMIN))])
def delete_house(house_id: str, db: Database = Depends(get_db)):
    _id = _house_id(house_id)
    result = houses(db).delete_one({"_id": _id})
    if result.deleted_count == 0:
        raise NotFound("No house found with that ID")
    # Remove house reference from all users
    users(db).update_many({"house_id": _id}, {"$set": {"house_id": None}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{house_id}/members", dependencies=[Depends(restrict_to(Role.ADMIN))])
def add_members(house_id: str, data: HouseMembersRequest, db: Database = Depends(get_db)):
    doc = _find_house(db, house_id)

    member_ids = []
    for user_id in data.members:
        _id = to_object_id(user_id)
        if _id is None or not users(db).find_one({"_id": _id, "active": {"$ne": False}}):
            raise NotFound(f"User with ID {user_id} not found")
        member_ids.append(_id)

    for _id in member_ids:
        users(db).update_one({"_id": _id}, {"$set": {"house_id": doc["_id"]}})
    doc = houses(db).find_one_and_update(
        {"_id": doc["_id"]},
        {"$addToSet": {"members": {"$each": member_ids}}},
        return_document=ReturnDocument.AFTER,
    )
    return {"house": House.from_document(doc)}


@router.delete("/{house_id}/members/{user_id}", dependencies=[Depends(restrict_to(Role.ADMIN))])
def remove_member(house_id: str, user_id: str, db: Database = Depends(get_db)):
    doc = _find_house(db, house_id)
    _id = to_object_id(user_id)
    if _id is None:
        raise NotFound(f"User with ID {user_id} not found")

    doc = houses(db).find_one_and_update(
        {"_id": doc["_id"]},
        {"$pull": {"members": _id, "secretaries": _id}},
        return_document=ReturnDocument.AFTER,
    )
    users(db).update_one({"_id": _id, "house_id": doc["_id"]}, {"$set": {"house_id": None}})
    return {"house": House.from_document(doc)}
