from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from campusvote.models.base import ObjectIdStr, stringify_ids, utcnow


class House(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: str = ""
    color: str = "#000000"
    logo: Optional[str] = None
    members: List[ObjectIdStr] = Field(default_factory=list)
    secretaries: List[ObjectIdStr] = Field(default_factory=list)
    active: bool = True
    created_by: ObjectIdStr
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "House":
        return cls.model_validate(stringify_ids(doc))
