from dataclasses import dataclass
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..exceptions import (
    ActiveElectionExists,
    ClassNotFound,
    ElectionNotClosed,
    ElectionNotFound,
    ElectionNotOpen,
)
from ..models.classroom import ClassRoom, Student
from ..models.election import Election
from ..models.eligibility import EligibilityRecord
from ..models.voting_token import VotingToken
from ..utils import clock
from ..utils.anon_token import generate_raw_token, token_digest
from ..utils.audit import SYSTEM_ACTOR, record_event
from ..utils.transaction import atomic


@dataclass(frozen=True)
class Activation:
    election_id: object
    activated: bool
    voters_added: int


@dataclass(frozen=True)
class Closure:
    election_id: object
    closed: bool
    tokens_expired: int


def get_election(election_id) -> Election:
    election = db.session.get(Election, election_id)
    if election is None:
        raise ElectionNotFound()
    return election


def create_election(*, class_id: int, nomination_start: datetime, nomination_end: datetime,
                    voting_start: datetime, voting_end: datetime, created_by: str | None = None) -> Election:
    if db.session.get(ClassRoom, class_id) is None:
        raise ClassNotFound()

    with atomic("create election"):
        # Constructor rejects an unordered timeline
        election = Election(
            class_id=class_id,
            nomination_start=nomination_start,
            nomination_end=nomination_end,
            voting_start=voting_start,
            voting_end=voting_end,
            created_by=created_by,
        )
        db.session.add(election)

    record_event(
        "ELECTION_CREATED",
        entity_type="ELECTION",
        entity_id=str(election.id),
        details={"class_id": class_id},
    )
    return election


def active_election_for_class(class_id: int) -> Election | None:
    return (
        Election.query
        .filter_by(class_id=class_id, active=True)
        .order_by(Election.created_at.desc())
        .first()
    )


def activate_election(election_id, *, actor: str | None = None, auto: bool = False) -> Activation:
    """
    Create the eligibility row and a voting token for every class member that
    lacks one, then mark the election active. Safe to repeat.

    Token secrets minted here are discarded: students obtain a usable secret
    through token issuance, which rotates the stored digest.
    """
    with atomic("activate election"):
        election = (
            Election.query
            .filter_by(id=election_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if election is None:
            raise ElectionNotFound()
        if election.published:
            raise ElectionNotOpen("Election has already closed")
        if election.active:
            return Activation(election.id, activated=False, voters_added=0)

        other = (
            db.session.query(Election.id)
            .filter(
                Election.class_id == election.class_id,
                Election.active.is_(True),
                Election.id != election.id,
            )
            .first()
        )
        if other is not None:
            raise ActiveElectionExists()

        enrolled = {
            r.student_id
            for r in db.session.query(EligibilityRecord.student_id)
            .filter(EligibilityRecord.election_id == election.id)
        }
        new_voters = [sid for sid in Student.members_of(election.class_id) if sid not in enrolled]
        for sid in new_voters:
            db.session.add(EligibilityRecord(student_id=sid, election_id=election.id, has_voted=False))
            db.session.add(VotingToken(
                student_id=sid,
                election_id=election.id,
                token_hash=token_digest(generate_raw_token()),
            ))

        activated = (
            Election.query
            .filter(Election.id == election.id, Election.active.is_(False), Election.published.is_(False))
            .update({"active": True}, synchronize_session=False)
        )

    if activated:
        current_app.logger.info(
            "Election %s activated (%s voters enrolled)", election_id, len(new_voters)
        )
        record_event(
            "ELECTION_ACTIVATED_AUTO" if auto else "ELECTION_ACTIVATED",
            entity_type="ELECTION",
            entity_id=str(election_id),
            actor=SYSTEM_ACTOR if auto else actor,
            details={"election_id": str(election_id), "voters_enrolled": len(new_voters)},
        )
    return Activation(election_id, activated=bool(activated), voters_added=len(new_voters))


def close_election(election_id, *, now: datetime | None = None, actor: str | None = None,
                   auto: bool = False) -> Closure:
    """
    Deactivate and publish an election whose voting window has ended, and
    force-expire every unused token so none can be redeemed afterwards.
    """
    now = now or clock.utcnow()
    with atomic("close election"):
        election = get_election(election_id)
        if now <= election.voting_end:
            raise ElectionNotClosed()

        # Tokens before the election row: the same order ballot casting locks in
        expired = (
            VotingToken.query
            .filter(VotingToken.election_id == election.id, VotingToken.used.is_(False))
            .update(
                {"used": True, "used_at": now, "student_id": None, "token_hash": None},
                synchronize_session=False,
            )
        )
        closed = (
            Election.query
            .filter(Election.id == election.id, Election.published.is_(False))
            .update({"active": False, "published": True}, synchronize_session=False)
        )

    if closed:
        current_app.logger.info("Election %s closed (%s unused tokens expired)", election_id, expired)
        record_event(
            "ELECTION_CLOSED" if auto else "RESULTS_PUBLISHED",
            entity_type="ELECTION",
            entity_id=str(election_id),
            actor=SYSTEM_ACTOR if auto else actor,
            details={"election_id": str(election_id), "tokens_expired": expired},
        )
    return Closure(election_id, closed=bool(closed), tokens_expired=expired)


def notices_for_student(student_id: str, now: datetime | None = None, limit: int = 15) -> list[dict]:
    now = now or clock.utcnow()
    student = db.session.get(Student, str(student_id))
    if student is None:
        return []

    elections = (
        Election.query
        .filter_by(class_id=student.class_id)
        .order_by(Election.created_at.desc())
        .limit(20)
        .all()
    )
    notices = []
    for e in elections:
        if e.in_nomination_window(now):
            notices.append({
                "type": "NOMINATION_OPEN",
                "election_id": str(e.id),
                "message": f"Nominations open until {e.nomination_end.isoformat()}Z",
                "ts": e.nomination_start,
            })
        if e.in_voting_window(now):
            notices.append({
                "type": "VOTING_OPEN",
                "election_id": str(e.id),
                "message": f"Voting open until {e.voting_end.isoformat()}Z",
                "ts": e.voting_start,
            })
        if e.published and now > e.voting_end:
            notices.append({
                "type": "RESULTS_PUBLISHED",
                "election_id": str(e.id),
                "message": "Results published",
                "ts": e.updated_at or e.created_at,
            })

    notices.sort(key=lambda n: n["ts"], reverse=True)
    return [{**n, "ts": n["ts"].isoformat() + "Z"} for n in notices[:limit]]
