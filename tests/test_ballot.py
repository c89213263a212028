import threading
from datetime import timedelta

import pytest
from bson import ObjectId

from campusvote.database.connection import votes
from campusvote.errors import Conflict, InvalidState, NotFound
from campusvote.models.base import utcnow
from campusvote.models.election_model import Candidate, Position
from campusvote.services.ballot import cast_vote, client_fingerprint

HASH = client_fingerprint("10.0.0.1", "pytest")


class TestCastVote:
    def test_records_vote(self, db, secretary_race, make_user):
        election, a, _, _ = secretary_race
        voter = make_user()

        vote = cast_vote(db, election.id, "Secretary", a, voter, HASH)

        assert vote.election == election.id
        assert vote.position == "Secretary"
        assert vote.candidate == a
        stored = votes(db).find_one({"_id": ObjectId(vote.id)})
        assert stored["voter"] == ObjectId(voter)
        assert stored["client_hash"] == HASH

    def test_returned_vote_hides_voter(self, db, secretary_race, make_user):
        election, a, _, _ = secretary_race
        vote = cast_vote(db, election.id, "Secretary", a, make_user(), HASH)

        payload = vote.model_dump()
        assert "voter" not in payload
        assert "client_hash" not in payload

    def test_second_vote_same_position_conflicts(self, db, secretary_race, make_user):
        election, a, b, _ = secretary_race
        voter = make_user()
        cast_vote(db, election.id, "Secretary", a, voter, HASH)

        with pytest.raises(Conflict):
            cast_vote(db, election.id, "Secretary", b, voter, HASH)
        assert votes(db).count_documents({}) == 1

    def test_conflict_comes_from_storage_constraint(self, db, secretary_race, make_user):
        # A concurrent request that already wrote its vote wins; no prior read is involved.
        election, a, _, _ = secretary_race
        voter = make_user()
        votes(db).insert_one({
            "election": ObjectId(election.id),
            "position": "Secretary",
            "candidate": ObjectId(a),
            "voter": ObjectId(voter),
            "timestamp": utcnow(),
        })

        with pytest.raises(Conflict):
            cast_vote(db, election.id, "Secretary", a, voter, HASH)

    def test_concurrent_submissions_record_one_vote(self, db, secretary_race, make_user, monkeypatch):
        election, a, b, _ = secretary_race
        voter = make_user()
        collection = votes(db)
        both_checked = threading.Barrier(2, timeout=5)
        insert_lock = threading.Lock()

        class GatedVotes:
            # Both requests have passed every check before either insert runs.
            def insert_one(self, doc):
                both_checked.wait()
                with insert_lock:
                    return collection.insert_one(doc)

        monkeypatch.setattr("campusvote.services.ballot.votes", lambda _db: GatedVotes())

        outcomes = []

        def submit(candidate):
            try:
                cast_vote(db, election.id, "Secretary", candidate, voter, HASH)
                outcomes.append("recorded")
            except Conflict:
                outcomes.append("conflict")

        threads = [threading.Thread(target=submit, args=(c,)) for c in (a, b)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(outcomes) == ["conflict", "recorded"]
        assert collection.count_documents({"voter": ObjectId(voter)}) == 1

    def test_unique_index_present(self, db):
        info = db["votes"].index_information()
        keys = [tuple(k for k, _ in spec["key"]) for spec in info.values() if spec.get("unique")]
        assert ("election", "position", "voter") in keys

    def test_same_voter_other_position(self, db, make_user, make_election):
        a, b, voter = make_user(), make_user(), make_user()
        election = make_election(positions=[
            Position(title="Secretary", candidates=[Candidate(user=a, approved=True)]),
            Position(title="Treasurer", candidates=[Candidate(user=b, approved=True)]),
        ])

        cast_vote(db, election.id, "Secretary", a, voter, HASH)
        cast_vote(db, election.id, "Treasurer", b, voter, HASH)

        assert votes(db).count_documents({"voter": ObjectId(voter)}) == 2

    def test_unapproved_candidate_rejected(self, db, secretary_race, make_user):
        election, _, _, c = secretary_race
        for role in ("user", "admin", "house", "society"):
            with pytest.raises(InvalidState, match="unapproved"):
                cast_vote(db, election.id, "Secretary", c, make_user(role=role), HASH)
        assert votes(db).count_documents({}) == 0

    def test_unknown_candidate_rejected(self, db, secretary_race, make_user):
        election, _, _, _ = secretary_race
        with pytest.raises(InvalidState):
            cast_vote(db, election.id, "Secretary", str(ObjectId()), make_user(), HASH)
        with pytest.raises(InvalidState):
            cast_vote(db, election.id, "Secretary", "not-an-id", make_user(), HASH)

    def test_unknown_position_rejected(self, db, secretary_race, make_user):
        election, a, _, _ = secretary_race
        with pytest.raises(InvalidState, match="Invalid position"):
            cast_vote(db, election.id, "President", a, make_user(), HASH)

    def test_missing_election(self, db, make_user):
        with pytest.raises(NotFound):
            cast_vote(db, str(ObjectId()), "Secretary", str(ObjectId()), make_user(), HASH)
        with pytest.raises(NotFound):
            cast_vote(db, "bogus", "Secretary", str(ObjectId()), make_user(), HASH)

    @pytest.mark.parametrize("status", ["draft", "upcoming", "completed", "cancelled"])
    def test_inactive_status_rejected(self, db, make_user, make_election, status):
        a = make_user()
        election = make_election(
            status=status,
            positions=[Position(title="Secretary", candidates=[Candidate(user=a, approved=True)])],
        )
        with pytest.raises(InvalidState, match="not currently active"):
            cast_vote(db, election.id, "Secretary", a, make_user(), HASH)

    def test_active_but_outside_window(self, db, secretary_race, make_user):
        election, a, _, _ = secretary_race
        before = election.voting_start - timedelta(minutes=1)
        after = election.voting_end + timedelta(seconds=1)

        for now in (before, after):
            with pytest.raises(InvalidState, match="Voting period"):
                cast_vote(db, election.id, "Secretary", a, make_user(), HASH, now=now)

    def test_window_bounds_inclusive(self, db, secretary_race, make_user):
        election, a, _, _ = secretary_race
        cast_vote(db, election.id, "Secretary", a, make_user(), HASH, now=election.voting_start)
        cast_vote(db, election.id, "Secretary", a, make_user(), HASH, now=election.voting_end)
        assert votes(db).count_documents({}) == 2

    def test_status_checked_before_position(self, db, make_user, make_election):
        election = make_election(status="draft")
        with pytest.raises(InvalidState, match="not currently active"):
            cast_vote(db, election.id, "Nope", str(ObjectId()), make_user(), HASH)


class TestFingerprint:
    def test_sha256_hex(self):
        assert len(HASH) == 64
        assert HASH == client_fingerprint("10.0.0.1", "pytest")

    def test_depends_on_origin_and_agent(self):
        assert client_fingerprint("10.0.0.2", "pytest") != HASH
        assert client_fingerprint("10.0.0.1", "curl") != HASH
