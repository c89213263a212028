from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pymongo.database import Database

from campusvote.database.connection import get_db
from campusvote.dependencies import get_current_user, restrict_to
from campusvote.models.user_model import Role, User
from campusvote.schemas import (
    ApproveNominationRequest,
    ElectionCreate,
    ElectionUpdate,
    NominationRequest,
    PositionIn,
)
from campusvote.services import elections as election_service
from campusvote.services.ballot import load_election

router = APIRouter(prefix="/api/elections", tags=["Election"])

MANAGERS = (Role.ADMIN, Role.HOUSE, Role.SOCIETY)


@router.get("/", dependencies=[Depends(get_current_user)])
def get_all_elections(
    status: Optional[str] = None,
    type: Optional[str] = None,
    house: Optional[str] = None,
    society: Optional[str] = None,
    db: Database = Depends(get_db),
):
    items = election_service.list_elections(db, status=status, type=type, house=house, society=society)
    return {"results": len(items), "elections": [e.model_dump(mode="json") for e in items]}


@router.get("/{election_id}", dependencies=[Depends(get_current_user)])
def get_election(election_id: str, db: Database = Depends(get_db)):
    election = load_election(db, election_id)
    return {"election": election_service.present(db, election)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_election(
    data: ElectionCreate,
    db: Database = Depends(get_db),
    user: User = Depends(restrict_to(*MANAGERS)),
):
    election = election_service.create_election(db, data, user)
    return {"message": "Election created successfully!", "election": election.model_dump(mode="json")}


@router.patch("/{election_id}")
def update_election(
    election_id: str,
    data: ElectionUpdate,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
):
    election = election_service.get_managed_election(db, election_id, user)
    updated = election_service.update_election(db, election, data)
    return {"election": updated.model_dump(mode="json")}


@router.delete("/{election_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_election(election_id: str, db: Database = Depends(get_db), user: User = Depends(get_current_user)):
    election = election_service.get_managed_election(db, election_id, user)
    election_service.delete_election(db, election)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{election_id}/position", status_code=status.HTTP_201_CREATED)
def add_position(
    election_id: str,
    data: PositionIn,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
):
    election = election_service.get_managed_election(db, election_id, user)
    updated = election_service.add_position(db, election, data)
    return {"election": updated.model_dump(mode="json")}


@router.post("/{election_id}/nominate", status_code=status.HTTP_201_CREATED)
def submit_nomination(
    election_id: str,
    data: NominationRequest,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
):
    election = election_service.submit_nomination(db, election_id, data.position, data.manifesto, user)
    return {"election": election_service.present(db, election)}


@router.patch("/{election_id}/approve-nomination")
def approve_nomination(
    election_id: str,
    data: ApproveNominationRequest,
    db: Database = Depends(get_db),
    user: User = Depends(restrict_to(*MANAGERS)),
):
    election = election_service.approve_nomination(db, election_id, data.position, data.candidate_id, user)
    return {"election": election_service.present(db, election)}
