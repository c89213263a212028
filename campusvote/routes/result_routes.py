from fastapi import APIRouter, Depends
from pymongo.database import Database

from campusvote.database.connection import get_db
from campusvote.dependencies import get_current_user
from campusvote.models.result_model import ElectionResults
from campusvote.services.results import compute_results

router = APIRouter(prefix="/api/results", tags=["Results"])


@router.get("/{election_id}", response_model=ElectionResults, dependencies=[Depends(get_current_user)])
def get_election_results(election_id: str, db: Database = Depends(get_db)):
    return compute_results(db, election_id)
