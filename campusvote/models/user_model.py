from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from campusvote.models.base import ObjectIdStr, stringify_ids, utcnow


class Role(str, Enum):
    ADMIN = "admin"
    HOUSE = "house"
    SOCIETY = "society"
    USER = "user"


class User(BaseModel):
    """A user account as seen by the application; the password hash stays in storage."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: str
    name: str
    email: str
    student_id: Optional[str] = None
    role: Role = Role.USER
    house_id: Optional[ObjectIdStr] = None
    society_ids: List[ObjectIdStr] = Field(default_factory=list)
    password_changed_at: Optional[datetime] = None
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def changed_password_after(self, issued_at: int) -> bool:
        if self.password_changed_at is None:
            return False
        return issued_at < int(self.password_changed_at.replace(tzinfo=timezone.utc).timestamp())

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "User":
        data = stringify_ids(doc)
        data.pop("password", None)
        return cls.model_validate(data)

    def public(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"password_changed_at", "active"})
