from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CandidateSummary(BaseModel):
    id: str
    name: Optional[str] = None
    student_id: Optional[str] = None


class CandidateResult(BaseModel):
    candidate: CandidateSummary
    votes: int = 0
    percentage: int = 0


class PositionResult(BaseModel):
    candidates: List[CandidateResult] = Field(default_factory=list)
    total_votes: int = 0


class ElectionSummary(BaseModel):
    id: str
    title: str
    type: str
    status: str


class ElectionResults(BaseModel):
    """Published result view. Never carries voter identity."""

    election: ElectionSummary
    results: Dict[str, PositionResult]
