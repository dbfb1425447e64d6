from datetime import timedelta

import pytest
from sqlalchemy import update

from classrep.exceptions import (
    AlreadyVoted,
    InvalidCandidate,
    InvalidToken,
    NotEligible,
    TokenAlreadyUsed,
    VotingClosed,
)
from classrep.extensions import db
from classrep.models import (
    AnonymousBallot,
    AuditLog,
    EligibilityRecord,
    Nomination,
    SpentToken,
    VotingToken,
)
from classrep.services import ballots
from classrep.services.ballots import cast_vote, has_voted
from classrep.services.results import tally
from classrep.services.tokens import STATUS_ALREADY_VOTED, issue_token
from classrep.utils.anon_token import token_digest

from conftest import T

DURING = T + timedelta(minutes=10)
VOTING_END = T + timedelta(hours=2)


def _token(election, student_id="V1", now=DURING):
    return issue_token(student_id=student_id, election_id=election.id, now=now).token


def _eligibility(student_id, election):
    return EligibilityRecord.query.filter_by(student_id=student_id, election_id=election.id).one()


def test_vote_then_reissue_then_replay(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)

    receipt = cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)

    assert receipt.recorded_at == DURING
    assert has_voted("V1", election.id) is True
    counts = {r["candidate_id"]: r["votes"] for r in tally(election.id)}
    assert counts == {"C1": 1, "C2": 0}

    assert issue_token(student_id="V1", election_id=election.id, now=DURING).status == STATUS_ALREADY_VOTED

    with pytest.raises(TokenAlreadyUsed):
        cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)
    assert AnonymousBallot.query.count() == 1


def test_consumed_token_is_unlinked_from_the_voter(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)
    cast_vote(student_id="V1", token=p1, candidate_id="C2", election_id=election.id, now=DURING)

    used = VotingToken.query.filter_by(election_id=election.id, used=True).one()
    assert used.student_id is None
    assert used.token_hash is None
    assert used.used_at == DURING
    assert SpentToken.query.filter_by(election_id=election.id, token_hash=token_digest(p1)).count() == 1

    ballot = AnonymousBallot.query.one()
    assert ballot.candidate_id == "C2"
    assert len(ballot.ballot_id) == 32
    assert not hasattr(ballot, "student_id")


def test_repeated_redemptions_succeed_once(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)

    outcomes = []
    for _ in range(5):
        try:
            cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)
            outcomes.append("ok")
        except (TokenAlreadyUsed, InvalidToken) as exc:
            outcomes.append(exc.kind.value)

    assert outcomes.count("ok") == 1
    assert outcomes[1:] == ["TOKEN_ALREADY_USED"] * 4
    assert AnonymousBallot.query.count() == 1


def test_second_vote_with_any_token_is_already_voted(ballot_box):
    election = ballot_box["election"]
    cast_vote(student_id="V1", token=_token(election), candidate_id="C1", election_id=election.id, now=DURING)

    # A stray unused token still bound to the voter
    stray = "stray-secret"
    db.session.add(VotingToken(student_id="V1", election_id=election.id, token_hash=token_digest(stray)))
    db.session.commit()

    with pytest.raises(AlreadyVoted):
        cast_vote(student_id="V1", token=stray, candidate_id="C2", election_id=election.id, now=DURING)
    assert AnonymousBallot.query.count() == 1


def test_unknown_token_is_invalid(ballot_box):
    election = ballot_box["election"]
    with pytest.raises(InvalidToken):
        cast_vote(student_id="V1", token="not-a-token", candidate_id="C1", election_id=election.id, now=DURING)


def test_token_of_another_voter_is_invalid(ballot_box):
    election = ballot_box["election"]
    p2 = _token(election, student_id="V2")

    with pytest.raises(InvalidToken):
        cast_vote(student_id="V1", token=p2, candidate_id="C1", election_id=election.id, now=DURING)
    assert has_voted("V2", election.id) is False


def test_candidate_must_be_approved(ballot_box, make_student, nominate):
    election = ballot_box["election"]
    pending = make_student("C3", name="Carol")
    nominate(election, pending, status=Nomination.STATUS_PENDING)
    p1 = _token(election)

    for candidate in ("C3", "V2", "nobody"):
        with pytest.raises(InvalidCandidate):
            cast_vote(student_id="V1", token=p1, candidate_id=candidate, election_id=election.id, now=DURING)

    # Nothing was consumed; the same token still works
    assert has_voted("V1", election.id) is False
    cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)
    assert AnonymousBallot.query.count() == 1


def test_vote_exactly_at_voting_end_is_accepted(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)

    cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=VOTING_END)

    assert has_voted("V1", election.id) is True


def test_vote_one_millisecond_late_is_rejected(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)

    with pytest.raises(VotingClosed):
        cast_vote(
            student_id="V1",
            token=p1,
            candidate_id="C1",
            election_id=election.id,
            now=VOTING_END + timedelta(milliseconds=1),
        )
    assert has_voted("V1", election.id) is False
    assert AnonymousBallot.query.count() == 0


def test_missing_eligibility_record(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)
    db.session.delete(_eligibility("V1", election))
    db.session.commit()

    with pytest.raises(NotEligible):
        cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)


def test_token_consumed_behind_the_coordinator_is_rejected(ballot_box, monkeypatch):
    election = ballot_box["election"]
    p1 = _token(election)
    require_approved = ballots.require_approved

    def consume_then_validate(election_id, candidate_id):
        db.session.execute(
            update(VotingToken)
            .where(VotingToken.token_hash == token_digest(p1))
            .values(used=True, used_at=DURING, student_id=None, token_hash=None)
        )
        require_approved(election_id, candidate_id)

    monkeypatch.setattr(ballots, "require_approved", consume_then_validate)

    with pytest.raises(TokenAlreadyUsed):
        cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)

    # Rolled back as a whole
    assert AnonymousBallot.query.count() == 0
    assert has_voted("V1", election.id) is False
    assert VotingToken.query.filter_by(token_hash=token_digest(p1), used=False).count() == 1


def test_eligibility_flipped_behind_the_coordinator_is_rejected(ballot_box, monkeypatch):
    election = ballot_box["election"]
    p1 = _token(election)
    require_approved = ballots.require_approved

    def flip_then_validate(election_id, candidate_id):
        db.session.execute(
            update(EligibilityRecord)
            .where(EligibilityRecord.student_id == "V1", EligibilityRecord.election_id == election_id)
            .values(has_voted=True, voted_at=DURING)
        )
        require_approved(election_id, candidate_id)

    monkeypatch.setattr(ballots, "require_approved", flip_then_validate)

    with pytest.raises(AlreadyVoted):
        cast_vote(student_id="V1", token=p1, candidate_id="C1", election_id=election.id, now=DURING)

    assert AnonymousBallot.query.count() == 0
    assert SpentToken.query.count() == 0


def test_success_audit_is_anonymous(ballot_box):
    election = ballot_box["election"]
    cast_vote(student_id="V1", token=_token(election), candidate_id="C1", election_id=election.id, now=DURING)

    for action in ("VOTE_CAST", "TOKEN_USED"):
        entry = AuditLog.query.filter_by(action=action).one()
        assert entry.actor == "ANON"
        assert entry.ip_address is None
        assert entry.user_agent is None
        assert entry.details == {"election_id": str(election.id)}


def test_failure_audit_names_the_reason_not_the_candidate(ballot_box):
    election = ballot_box["election"]
    p1 = _token(election)

    with pytest.raises(InvalidCandidate):
        cast_vote(student_id="V1", token=p1, candidate_id="V2", election_id=election.id, now=DURING)

    entry = AuditLog.query.filter_by(action="VOTE_FAILURE").one()
    assert entry.actor == "V1"
    assert entry.outcome == AuditLog.OUTCOME_FAILURE
    assert entry.details == {"election_id": str(election.id), "reason": "INVALID_CANDIDATE"}


def test_ballot_order_does_not_follow_cast_order(ballot_box, monkeypatch):
    election = ballot_box["election"]
    ballot_ids = iter(["f" * 32, "0" * 32])
    monkeypatch.setattr(ballots, "new_ballot_id", lambda: next(ballot_ids))

    early = T + timedelta(minutes=5)
    late = T + timedelta(minutes=30)
    cast_vote(student_id="V2", token=_token(election, "V2", now=early), candidate_id="C2",
              election_id=election.id, now=early)
    cast_vote(student_id="V1", token=_token(election, "V1", now=late), candidate_id="C1",
              election_id=election.id, now=late)

    key = list(AnonymousBallot.__table__.primary_key.columns)
    assert [c.name for c in key] == ["ballot_id"]
    assert not hasattr(AnonymousBallot, "id")

    voters = [
        r.student_id for r in EligibilityRecord.query
        .filter_by(election_id=election.id, has_voted=True)
        .order_by(EligibilityRecord.voted_at)
    ]
    choices = [b.candidate_id for b in AnonymousBallot.query.order_by(*key)]
    # Key order follows the random ballot ids, not the order votes arrived in
    assert voters == ["V2", "V1"]
    assert choices == ["C1", "C2"]
