"""Results tabulation for an election.

Only approved candidates appear; each position starts with every approved
candidate at zero. Votes whose position or candidate cannot be matched are
skipped, so a stale or malformed record never aborts the whole tally.

A skipped vote counts toward neither a candidate nor the position's
`total_votes`, so percentages are shares of counted votes only. Earlier
deployments added every vote with a matching position to the total, even
when its candidate was unknown or unapproved; totals from the two can differ.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.database import Database

from campusvote.crud import user_summaries
from campusvote.database.connection import votes
from campusvote.errors import Forbidden
from campusvote.models.base import naive_utc, utcnow
from campusvote.models.election_model import Election, ElectionStatus
from campusvote.models.result_model import (
    CandidateResult,
    CandidateSummary,
    ElectionResults,
    ElectionSummary,
    PositionResult,
)
from campusvote.services.ballot import load_election

logger = logging.getLogger(__name__)


def results_visible(election: Election, now: datetime) -> bool:
    # Visible once completed, or as soon as the voting window has closed.
    return election.status == ElectionStatus.COMPLETED or now >= election.voting_end


def percentage(count: int, total: int) -> int:
    """Whole-number share, rounding halves up."""
    if total <= 0:
        return 0
    return int(math.floor(count / total * 100 + 0.5))


def _position_title(value: Any, titles: set, titles_by_id: Dict[str, str]) -> Optional[str]:
    """Normalize a stored vote position (title, id or embedded reference) to a title."""
    if isinstance(value, str):
        if value in titles:
            return value
        return titles_by_id.get(value)
    if isinstance(value, ObjectId):
        return titles_by_id.get(str(value))
    if isinstance(value, dict):
        title = value.get("title")
        if isinstance(title, str) and title in titles:
            return title
        ref = value.get("_id", value.get("id"))
        if isinstance(ref, (ObjectId, str)):
            return titles_by_id.get(str(ref))
    return None


def _candidate_id(value: Any) -> Optional[str]:
    if isinstance(value, (ObjectId, str)):
        return str(value)
    if isinstance(value, dict):
        ref = value.get("_id", value.get("id"))
        return str(ref) if ref is not None else None
    return None


def tabulate(election: Election, vote_docs, candidate_info: Dict[str, Dict[str, Any]]) -> Dict[str, PositionResult]:
    """Count votes per approved candidate per position, then rank."""
    results: Dict[str, PositionResult] = {}
    slots: Dict[str, Dict[str, CandidateResult]] = {}
    for position in election.positions:
        entries = []
        for candidate in position.approved_candidates():
            info = candidate_info.get(candidate.user, {})
            entries.append(CandidateResult(
                candidate=CandidateSummary(
                    id=candidate.user,
                    name=info.get("name"),
                    student_id=info.get("student_id"),
                ),
            ))
        results[position.title] = PositionResult(candidates=entries)
        slots[position.title] = {e.candidate.id: e for e in entries}

    titles = set(results)
    titles_by_id = {p.id: p.title for p in election.positions}

    skipped = 0
    for vote in vote_docs:
        title = _position_title(vote.get("position"), titles, titles_by_id)
        entry = slots.get(title, {}).get(_candidate_id(vote.get("candidate"))) if title else None
        if entry is None:
            skipped += 1
            continue
        entry.votes += 1
        results[title].total_votes += 1

    if skipped:
        logger.warning(f"Skipped {skipped} unmatched vote(s) while tabulating election {election.id}")

    for bucket in results.values():
        for entry in bucket.candidates:
            entry.percentage = percentage(entry.votes, bucket.total_votes)
        # sorted() is stable, so equal counts keep their nomination order.
        bucket.candidates = sorted(bucket.candidates, key=lambda e: e.votes, reverse=True)

    return results


def compute_results(db: Database, election_id: str, now: Optional[datetime] = None) -> ElectionResults:
    now = naive_utc(now) if now is not None else utcnow()

    election = load_election(db, election_id)
    if not results_visible(election, now):
        raise Forbidden("Results are not available until the election is completed")

    candidate_ids = {c.user for p in election.positions for c in p.approved_candidates()}
    candidate_info = user_summaries(db, candidate_ids) if candidate_ids else {}

    # Only position and candidate are read; voter identity never leaves storage.
    vote_docs = votes(db).find({"election": ObjectId(election.id)}, {"_id": 0, "position": 1, "candidate": 1})

    return ElectionResults(
        election=ElectionSummary(**election.summary()),
        results=tabulate(election, vote_docs, candidate_info),
    )
