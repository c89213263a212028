from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from campusvote.models.base import ObjectIdStr, stringify_ids, utcnow


class GrievanceStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under-review"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class Resolution(BaseModel):
    comment: str
    resolved_by: ObjectIdStr
    resolved_at: datetime = Field(default_factory=utcnow)


class Grievance(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    election: Optional[ObjectIdStr] = None
    status: GrievanceStatus = GrievanceStatus.PENDING
    submitted_by: ObjectIdStr
    submitted_at: datetime = Field(default_factory=utcnow)
    assigned_to: Optional[ObjectIdStr] = None
    resolution: Optional[Resolution] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Grievance":
        return cls.model_validate(stringify_ids(doc))
