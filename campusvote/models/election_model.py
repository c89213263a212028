from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from campusvote.models.base import ObjectIdStr, naive_utc, oid, stringify_ids, utcnow


class ElectionType(str, Enum):
    UNIVERSITY = "university"
    HOUSE = "house"
    SOCIETY = "society"


class ElectionStatus(str, Enum):
    DRAFT = "draft"
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Candidate(BaseModel):
    user: ObjectIdStr
    approved: bool = False
    approved_by: Optional[ObjectIdStr] = None
    approved_at: Optional[datetime] = None
    manifesto: str = ""
    nominated_at: datetime = Field(default_factory=utcnow)

    @field_validator("approved_at", "nominated_at")
    @classmethod
    def naive_datetimes(cls, v):
        return naive_utc(v)

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump()
        doc["user"] = oid(self.user)
        doc["approved_by"] = oid(self.approved_by)
        return doc


class Position(BaseModel):
    id: str = Field(default_factory=lambda: str(ObjectId()))
    title: str = Field(..., min_length=1)
    description: str = ""
    candidates: List[Candidate] = Field(default_factory=list)

    @model_validator(mode="after")
    def one_nomination_per_user(self):
        users = [c.user for c in self.candidates]
        if len(users) != len(set(users)):
            raise ValueError(f"A user can only be nominated once for position '{self.title}'")
        return self

    def find_candidate(self, user_id: str) -> Optional[Candidate]:
        return next((c for c in self.candidates if c.user == user_id), None)

    def approved_candidates(self) -> List[Candidate]:
        return [c for c in self.candidates if c.approved]

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "title": self.title,
            "description": self.description,
            "candidates": [c.to_document() for c in self.candidates],
        }


class Election(BaseModel):
    """An election with its embedded positions and candidates.

    Construction enforces the record invariants: the nomination window
    precedes the voting window, house and society elections name their
    owner, and position titles are unique within the election.
    """

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: str = ""
    type: ElectionType
    status: ElectionStatus = ElectionStatus.DRAFT
    house: Optional[ObjectIdStr] = None
    society: Optional[ObjectIdStr] = None
    positions: List[Position] = Field(default_factory=list)
    nomination_start: datetime
    nomination_end: datetime
    voting_start: datetime
    voting_end: datetime
    results_released_at: Optional[datetime] = None
    created_by: ObjectIdStr
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @field_validator(
        "nomination_start", "nomination_end", "voting_start", "voting_end",
        "results_released_at", "created_at", "updated_at",
    )
    @classmethod
    def naive_datetimes(cls, v):
        return naive_utc(v)

    @model_validator(mode="after")
    def check_invariants(self):
        if not (self.nomination_start < self.nomination_end <= self.voting_start < self.voting_end):
            raise ValueError(
                "Election dates must satisfy nomination_start < nomination_end "
                "<= voting_start < voting_end"
            )
        if self.type == ElectionType.HOUSE and not self.house:
            raise ValueError("House elections must specify a house")
        if self.type == ElectionType.SOCIETY and not self.society:
            raise ValueError("Society elections must specify a society")
        titles = [p.title for p in self.positions]
        if len(titles) != len(set(titles)):
            raise ValueError("Position titles must be unique within an election")
        return self

    def find_position(self, title: str) -> Optional[Position]:
        return next((p for p in self.positions if p.title == title), None)

    def voting_window_open(self, now: datetime) -> bool:
        return self.voting_start <= now <= self.voting_end

    def nomination_window_open(self, now: datetime) -> bool:
        return self.nomination_start <= now <= self.nomination_end

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "type": self.type, "status": self.status}

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Election":
        return cls.model_validate(stringify_ids(doc))

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude={"id", "positions"})
        doc["house"] = oid(self.house)
        doc["society"] = oid(self.society)
        doc["created_by"] = oid(self.created_by)
        doc["positions"] = [p.to_document() for p in self.positions]
        if self.id is not None:
            doc["_id"] = ObjectId(self.id)
        return doc
