from fastapi import APIRouter, Depends, status
from pymongo.database import Database

from campusvote import crud
from campusvote.database.connection import get_db
from campusvote.dependencies import get_current_user
from campusvote.errors import NotFound, Unauthorized
from campusvote.models.user_model import User
from campusvote.schemas import LoginRequest, RefreshRequest, SignupRequest, UpdatePasswordRequest
from campusvote.security import create_access_token, create_refresh_token, decode_token

router = APIRouter(prefix="/api/auth", tags=["Auth"])
admin_router = APIRouter(prefix="/admin/auth", tags=["Admin Auth"])


def _tokens(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id),
        "refresh_token": create_refresh_token(user.id),
        "token_type": "bearer",
        "user": user.public(),
    }


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Database = Depends(get_db)):
    user = crud.create_user(db, data)
    return _tokens(user)


@router.post("/login")
def login(data: LoginRequest, db: Database = Depends(get_db)):
    user = crud.login_user(db, data.email, data.password)
    return _tokens(user)


@router.post("/refresh-token")
def refresh_token(data: RefreshRequest, db: Database = Depends(get_db)):
    payload = decode_token(data.refresh_token, expected_type="refresh")
    try:
        user = crud.get_user(db, payload["sub"])
    except NotFound:
        raise Unauthorized("The user belonging to this token no longer exists")
    return {"access_token": create_access_token(user.id), "token_type": "bearer"}


@router.patch("/update-password")
def update_password(
    data: UpdatePasswordRequest,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
):
    updated = crud.update_password(db, user, data.current_password, data.new_password)
    return _tokens(updated)


@router.get("/status")
def auth_status(user: User = Depends(get_current_user)):
    return {"is_logged_in": True, "user": user.public()}


@admin_router.post("")
def admin_login(data: LoginRequest, db: Database = Depends(get_db)):
    admin = crud.login_admin(db, data.email, data.password)
    return {"access_token": create_access_token(admin.id), "token_type": "bearer", "user": admin.public()}
