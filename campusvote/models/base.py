from datetime import datetime, timezone
from typing import Annotated, Any, Iterable, Optional

from bson import ObjectId
from pydantic import AfterValidator


def utcnow() -> datetime:
    """Current time as naive UTC, the form MongoDB hands datetimes back in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def stringify_ids(value: Any) -> Any:
    """Recursively render ObjectIds as strings and `_id` keys as `id`."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {("id" if k == "_id" else k): stringify_ids(v) for k, v in value.items()}
    if isinstance(value, list):
        return [stringify_ids(v) for v in value]
    return value


def oid(value: Optional[str]) -> Optional[ObjectId]:
    return ObjectId(value) if value is not None else None


def oids(values: Iterable[str]) -> list:
    return [ObjectId(v) for v in values]


def check_object_id(value: Optional[str]) -> Optional[str]:
    """Field validator body: accept None or a valid ObjectId string."""
    if value is not None and not ObjectId.is_valid(value):
        raise ValueError(f"'{value}' is not a valid id")
    return value


ObjectIdStr = Annotated[str, AfterValidator(check_object_id)]
