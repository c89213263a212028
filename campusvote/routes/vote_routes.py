from bson import ObjectId
from fastapi import APIRouter, Depends, Request, status
from pymongo.database import Database

from campusvote.crud import user_summaries
from campusvote.database.connection import elections, get_db, votes
from campusvote.dependencies import get_current_user
from campusvote.models.user_model import User
from campusvote.models.vote_model import VoteOut
from campusvote.schemas import CastVoteRequest
from campusvote.services.ballot import cast_vote, client_fingerprint

vote_router = APIRouter(prefix="/api/votes", tags=["Vote"])


# ------------------------------
# CAST VOTE API
# ------------------------------
@vote_router.post("/{election_id}", status_code=status.HTTP_201_CREATED)
def cast(
    election_id: str,
    vote: CastVoteRequest,
    request: Request,
    db: Database = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Casts the caller's vote for one position of an election."""
    client_ip = request.client.host if request.client else None
    client_hash = client_fingerprint(client_ip, request.headers.get("user-agent"))

    created = cast_vote(db, election_id, vote.position, vote.candidate, user.id, client_hash)
    return {"message": "Vote cast successfully!", "vote": created}


# ------------------------------
# CALLER'S VOTING HISTORY
# ------------------------------
@vote_router.get("/my")
def get_my_votes(db: Database = Depends(get_db), user: User = Depends(get_current_user)):
    """Lists the caller's own votes; the voter field is never part of the payload."""
    docs = list(votes(db).find({"voter": ObjectId(user.id)}, {"voter": 0, "client_hash": 0}))

    election_ids = {d["election"] for d in docs}
    summaries = {
        e["_id"]: {"id": str(e["_id"]), "title": e.get("title"), "type": e.get("type"), "status": e.get("status")}
        for e in elections(db).find({"_id": {"$in": list(election_ids)}}, {"title": 1, "type": 1, "status": 1})
    }
    names = user_summaries(db, {str(d["candidate"]) for d in docs}) if docs else {}

    items = []
    for doc in docs:
        out = VoteOut.from_document(doc).model_dump(mode="json")
        out["election"] = summaries.get(doc["election"], {"id": str(doc["election"])})
        out["candidate"] = {"id": str(doc["candidate"]), "name": names.get(str(doc["candidate"]), {}).get("name")}
        items.append(out)
    return {"results": len(items), "votes": items}
