from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from campusvote.models.election_model import ElectionStatus, ElectionType
from campusvote.models.society_model import MemberRole, SocietyCategory
from campusvote.models.user_model import Role


# --- Auth ---
class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8)
    student_id: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


# --- Users ---
class UpdateMeRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    student_id: Optional[str] = None
    role: Optional[Role] = None
    house_id: Optional[str] = None
    society_ids: Optional[List[str]] = None


# --- Houses ---
class HouseCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    color: str = "#000000"
    logo: Optional[str] = None
    secretaries: List[str] = Field(default_factory=list)


class HouseUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    logo: Optional[str] = None
    secretaries: Optional[List[str]] = None
    active: Optional[bool] = None


class HouseMembersRequest(BaseModel):
    members: List[str]


# --- Societies ---
class SocietyCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    category: SocietyCategory
    logo: Optional[str] = None
    leads: List[str] = Field(default_factory=list)


class SocietyUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[SocietyCategory] = None
    logo: Optional[str] = None
    active: Optional[bool] = None


class SocietyMemberIn(BaseModel):
    user_id: str
    role: MemberRole = MemberRole.MEMBER


class SocietyMembersRequest(BaseModel):
    members: List[SocietyMemberIn]


# --- Elections ---
class PositionIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""


class ElectionCreate(BaseModel):
    title: str = Field(..., min_length=1, json_schema_extra={"example": "Student Council 2026"})
    description: str = ""
    type: ElectionType
    house: Optional[str] = None
    society: Optional[str] = None
    positions: List[PositionIn] = Field(default_factory=list)
    nomination_start: datetime
    nomination_end: datetime
    voting_start: datetime
    voting_end: datetime


class ElectionUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ElectionStatus] = None
    nomination_start: Optional[datetime] = None
    nomination_end: Optional[datetime] = None
    voting_start: Optional[datetime] = None
    voting_end: Optional[datetime] = None


class NominationRequest(BaseModel):
    position: str = Field(..., min_length=1)
    manifesto: str = ""


class ApproveNominationRequest(BaseModel):
    position: str = Field(..., min_length=1)
    candidate_id: str = Field(..., min_length=1)


# --- Votes ---
class CastVoteRequest(BaseModel):
    position: str
    candidate: str


# --- Grievances ---
class GrievanceCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    election: Optional[str] = None


class GrievanceStatusUpdate(BaseModel):
    status: str
    assigned_to: Optional[str] = None


class ResolveRequest(BaseModel):
    comment: Optional[str] = None

