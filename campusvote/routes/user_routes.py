from fastapi import APIRouter, Depends, Response, status
from pymongo.database import Database

from campusvote import crud
from campusvote.database.connection import get_db
from campusvote.dependencies import get_current_user, restrict_to
from campusvote.models.user_model import Role, User
from campusvote.schemas import UpdateMeRequest, UserUpdateRequest

router = APIRouter(prefix="/api/users", tags=["Users"])


# --- Profile ---

@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return {"user": user.public()}


@router.patch("/me")
def update_me(data: UpdateMeRequest, db: Database = Depends(get_db), user: User = Depends(get_current_user)):
    return {"user": crud.update_me(db, user, data).public()}


# --- Admin ---

@router.get("/", dependencies=[Depends(restrict_to(Role.ADMIN))])
def get_all_users(db: Database = Depends(get_db)):
    users = [u.public() for u in crud.list_users(db)]
    return {"results": len(users), "users": users}


@router.get("/{user_id}", dependencies=[Depends(restrict_to(Role.ADMIN))])
def get_user(user_id: str, db: Database = Depends(get_db)):
    return {"user": crud.get_user(db, user_id).public()}


@router.patch("/{user_id}", dependencies=[Depends(restrict_to(Role.ADMIN))])
def update_user(user_id: str, data: UserUpdateRequest, db: Database = Depends(get_db)):
    return {"user": crud.update_user(db, user_id, data).public()}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(restrict_to(Role.ADMIN))])
def delete_user(user_id: str, db: Database = Depends(get_db)):
    crud.deactivate_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
