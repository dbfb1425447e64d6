"""
Anonymous ballot casting.

One transaction takes the token row lock, then the eligibility row lock,
re-validates the election and candidate, appends the ballot and severs the
token from its voter. The row locks serialize concurrent attempts on
PostgreSQL/MySQL; the conditional updates and the ``spent_tokens`` unique
constraint keep a second redemption from committing on any dialect.
"""
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..exceptions import (
    AlreadyVoted,
    ElectionError,
    ErrorKind,
    InternalFailure,
    InvalidToken,
    NotEligible,
    TokenAlreadyUsed,
    VotingClosed,
)
from ..models.audit_log import AuditLog
from ..models.ballot import AnonymousBallot
from ..models.election import Election
from ..models.eligibility import EligibilityRecord
from ..models.voting_token import SpentToken, VotingToken
from ..utils import clock
from ..utils.anon_token import new_ballot_id, token_digest
from ..utils.audit import record_event
from ..utils.rbac import ROLE_STUDENT
from .candidates import require_approved


@dataclass(frozen=True)
class BallotReceipt:
    election_id: object
    recorded_at: datetime


def _was_spent(election_id, digest: str) -> bool:
    return (
        db.session.query(SpentToken.id)
        .filter(SpentToken.election_id == election_id, SpentToken.token_hash == digest)
        .first()
        is not None
    )


def _record_ballot(student_id: str, digest: str, candidate_id: str, election_id, now: datetime) -> None:
    # 1. token row
    token_row = (
        VotingToken.query
        .filter_by(token_hash=digest, election_id=election_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if token_row is None:
        if _was_spent(election_id, digest):
            raise TokenAlreadyUsed()
        raise InvalidToken()
    if token_row.used:
        raise TokenAlreadyUsed()
    if token_row.student_id != student_id:
        raise InvalidToken()

    # 2. eligibility row of the voter the token belongs to
    record = (
        EligibilityRecord.query
        .filter_by(student_id=token_row.student_id, election_id=election_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if record is None:
        raise NotEligible()
    if record.has_voted:
        raise AlreadyVoted()

    # 3. the lifecycle sweep may have closed the election since the token was issued
    election = (
        Election.query
        .filter_by(id=election_id)
        .with_for_update(read=True)
        .populate_existing()
        .first()
    )
    if election is None or not election.voting_open_at(now):
        raise VotingClosed()

    # 4.
    require_approved(election_id, candidate_id)

    # 5.
    db.session.add(AnonymousBallot(
        election_id=election_id,
        ballot_id=new_ballot_id(),
        candidate_id=candidate_id,
    ))

    # 6. consume + unlink
    consumed = (
        VotingToken.query
        .filter(VotingToken.id == token_row.id, VotingToken.used.is_(False))
        .update(
            {"used": True, "used_at": now, "student_id": None, "token_hash": None},
            synchronize_session=False,
        )
    )
    if consumed != 1:
        raise TokenAlreadyUsed()
    db.session.add(SpentToken(election_id=election_id, token_hash=digest))

    # 7.
    flipped = (
        EligibilityRecord.query
        .filter(EligibilityRecord.id == record.id, EligibilityRecord.has_voted.is_(False))
        .update({"has_voted": True, "voted_at": now}, synchronize_session=False)
    )
    if flipped != 1:
        raise AlreadyVoted()

    db.session.flush()


def _audit_failure(student_id: str, election_id, kind: ErrorKind) -> None:
    # Keeps the acting voter for abuse monitoring; never the attempted candidate
    record_event(
        "VOTE_FAILURE",
        entity_type="VOTE",
        entity_id=str(election_id),
        actor=student_id,
        role=ROLE_STUDENT,
        details={"election_id": str(election_id), "reason": kind.value},
        outcome=AuditLog.OUTCOME_FAILURE,
    )


def cast_vote(
    *,
    student_id: str,
    token: str,
    candidate_id: str,
    election_id,
    now: datetime | None = None,
) -> BallotReceipt:
    """
    Record exactly one anonymous ballot for the voter holding ``token`` or
    raise without leaving any partial write. Never retried automatically.
    """
    now = now or clock.utcnow()
    student_id = str(student_id)
    candidate_id = str(candidate_id)

    try:
        _record_ballot(student_id, token_digest(token), candidate_id, election_id, now)
        db.session.commit()
    except ElectionError as exc:
        db.session.rollback()
        _audit_failure(student_id, election_id, exc.kind)
        raise
    except IntegrityError as exc:
        # A concurrent redemption of the same token committed first
        db.session.rollback()
        current_app.logger.info("Lost token redemption race for election %s", election_id)
        _audit_failure(student_id, election_id, ErrorKind.TOKEN_ALREADY_USED)
        raise TokenAlreadyUsed() from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("DB error while casting vote")
        _audit_failure(student_id, election_id, ErrorKind.INTERNAL_FAILURE)
        raise InternalFailure("Failed to record vote") from exc
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Unexpected error while casting vote")
        _audit_failure(student_id, election_id, ErrorKind.INTERNAL_FAILURE)
        raise InternalFailure("Failed to record vote") from exc

    # Anonymous subject: no actor, no IP, no ballot id
    details = {"election_id": str(election_id)}
    record_event("VOTE_CAST", entity_type="VOTE", details=details, anonymous=True)
    record_event("TOKEN_USED", entity_type="TOKEN", details=details, anonymous=True)

    return BallotReceipt(election_id=election_id, recorded_at=now)


def has_voted(student_id: str, election_id) -> bool:
    record = EligibilityRecord.query.filter_by(student_id=str(student_id), election_id=election_id).first()
    return bool(record and record.has_voted)
