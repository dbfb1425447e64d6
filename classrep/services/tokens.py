"""
Voting token issuance.

A student receives the plaintext secret exactly once per request; only its
HMAC digest is persisted. Asking again while the previous secret is unused
rotates the digest on the same row, so any earlier plaintext stops working.
That rotation is defence in depth, not a revocation guarantee: a secret
redeemed before the rotation commits has already been spent.
"""
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..exceptions import ElectionNotFound, ElectionNotOpen, NotEligible, PolicyNotAccepted
from ..models.election import Election
from ..models.eligibility import EligibilityRecord
from ..models.policy import Policy, PolicyAcceptance
from ..models.voting_token import VotingToken
from ..utils import clock
from ..utils.anon_token import generate_raw_token, token_digest
from ..utils.audit import record_event
from ..utils.rbac import ROLE_STUDENT
from ..utils.transaction import atomic

STATUS_ISSUED = "issued"
STATUS_ALREADY_VOTED = "already_voted"


@dataclass(frozen=True)
class TokenIssue:
    status: str
    token: str | None = None

    def to_dict(self) -> dict:
        if self.token is None:
            return {"status": self.status}
        return {"status": self.status, "token": self.token}


def _locked_unused_token(student_id: str, election_id):
    return (
        VotingToken.query
        .filter_by(student_id=student_id, election_id=election_id, used=False)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _issue_once(student_id: str, election_id, plaintext: str) -> TokenIssue:
    with atomic("issue voting token", passthrough=(IntegrityError,)):
        # Same lock order as ballot casting: token row, then eligibility row
        token_row = _locked_unused_token(student_id, election_id)
        record = (
            EligibilityRecord.query
            .filter_by(student_id=student_id, election_id=election_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if record is None:
            raise NotEligible()
        if record.has_voted:
            return TokenIssue(STATUS_ALREADY_VOTED)

        digest = token_digest(plaintext)
        if token_row is not None:
            token_row.token_hash = digest
        else:
            db.session.add(VotingToken(student_id=student_id, election_id=election_id, token_hash=digest))
    return TokenIssue(STATUS_ISSUED, plaintext)


def issue_token(*, student_id: str, election_id, now: datetime | None = None) -> TokenIssue:
    now = now or clock.utcnow()
    student_id = str(student_id)

    election = db.session.get(Election, election_id)
    if election is None:
        raise ElectionNotFound()
    if not election.voting_open_at(now):
        raise ElectionNotOpen()

    policy = Policy.query.filter_by(name=Policy.VOTING_POLICY).first()
    if policy is not None and not PolicyAcceptance.has_accepted(student_id, policy):
        raise PolicyNotAccepted("Voting Policy must be accepted before voting")

    try:
        issue = _issue_once(student_id, election_id, generate_raw_token())
    except IntegrityError:
        # A concurrent first request inserted the row; rotate that one instead
        current_app.logger.info("Concurrent token issuance for election %s; rotating", election_id)
        issue = _issue_once(student_id, election_id, generate_raw_token())

    if issue.status == STATUS_ISSUED:
        record_event(
            "TOKEN_ISSUED",
            entity_type="ELECTION",
            entity_id=str(election_id),
            actor=student_id,
            role=ROLE_STUDENT,
            details={"election_id": str(election_id)},
        )
    return issue
