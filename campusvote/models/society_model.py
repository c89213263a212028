from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from campusvote.models.base import ObjectIdStr, stringify_ids, utcnow


class SocietyCategory(str, Enum):
    CULTURAL = "cultural"
    TECHNICAL = "technical"
    SPORTS = "sports"
    ACADEMIC = "academic"
    SOCIAL = "social"
    OTHER = "other"


class MemberRole(str, Enum):
    MEMBER = "member"
    LEAD = "lead"
    COORDINATOR = "coordinator"


class SocietyMember(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    user: ObjectIdStr
    role: MemberRole = MemberRole.MEMBER
    joined_at: datetime = Field(default_factory=utcnow)


class Society(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: str = ""
    category: SocietyCategory
    logo: Optional[str] = None
    members: List[SocietyMember] = Field(default_factory=list)
    leads: List[ObjectIdStr] = Field(default_factory=list)
    active: bool = True
    created_by: ObjectIdStr
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def is_lead(self, user_id: str) -> bool:
        return user_id in self.leads

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Society":
        return cls.model_validate(stringify_ids(doc))
