from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from campusvote.models.base import ObjectIdStr, oid, stringify_ids, utcnow


class Vote(BaseModel):
    """Write-side vote record. Immutable once stored."""

    election: ObjectIdStr
    position: str
    candidate: ObjectIdStr
    voter: ObjectIdStr
    timestamp: datetime = Field(default_factory=utcnow)
    client_hash: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump()
        doc["election"] = oid(self.election)
        doc["candidate"] = oid(self.candidate)
        doc["voter"] = oid(self.voter)
        return doc


class VoteOut(BaseModel):
    """Read-side vote. Carries neither the voter nor the client fingerprint."""

    id: str
    election: Any
    position: str
    candidate: Any
    timestamp: datetime

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "VoteOut":
        data = stringify_ids(doc)
        data.pop("voter", None)
        data.pop("client_hash", None)
        return cls.model_validate(data)
