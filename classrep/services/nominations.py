from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..exceptions import (
    NominationAlreadyDecided,
    NominationExists,
    NominationNotFound,
    NominationWindowClosed,
    NotEligible,
    PolicyNotAccepted,
)
from ..models.classroom import Student
from ..models.election import Election
from ..models.nomination import Nomination
from ..models.policy import Policy, PolicyAcceptance
from ..utils import clock
from ..utils.audit import SYSTEM_ACTOR, record_event
from ..utils.mailer import get_notifier
from ..utils.transaction import atomic
from .elections import get_election


def submit_nomination(*, student_id: str, election_id, manifesto: str | None = None,
                      photo_url: str | None = None, now: datetime | None = None) -> Nomination:
    now = now or clock.utcnow()
    student_id = str(student_id)

    election = get_election(election_id)
    if not election.in_nomination_window(now):
        raise NominationWindowClosed()

    student = db.session.get(Student, student_id)
    if student is None or student.class_id != election.class_id:
        raise NotEligible("Only students of this class can stand in this election")

    policy = Policy.query.filter_by(name=Policy.NOMINATION_POLICY).first()
    if policy is not None and not PolicyAcceptance.has_accepted(student_id, policy):
        raise PolicyNotAccepted()

    if Nomination.query.filter_by(election_id=election.id, student_id=student_id).first():
        raise NominationExists()

    try:
        with atomic("submit nomination", passthrough=(IntegrityError,)):
            nomination = Nomination(
                election_id=election.id,
                student_id=student_id,
                manifesto=manifesto,
                photo_url=photo_url,
                status=Nomination.STATUS_PENDING,
            )
            db.session.add(nomination)
    except IntegrityError as exc:
        raise NominationExists() from exc

    record_event(
        "NOMINATION_SUBMITTED",
        entity_type="NOMINATION",
        entity_id=str(nomination.id),
        details={"election_id": str(election.id)},
    )
    return nomination


def list_for_election(election_id) -> list[Nomination]:
    get_election(election_id)
    return (
        Nomination.query
        .filter_by(election_id=election_id)
        .order_by(Nomination.created_at.asc(), Nomination.id.asc())
        .all()
    )


def _notify_decision(nomination: Nomination) -> None:
    student = db.session.get(Student, nomination.student_id)
    if student is not None:
        get_notifier().nomination_decided(student, nomination)


def review_nomination(nomination_id: int, *, approve: bool, reviewer: str,
                      reason: str | None = None, now: datetime | None = None) -> Nomination:
    now = now or clock.utcnow()
    with atomic("review nomination"):
        nomination = (
            Nomination.query
            .filter_by(id=nomination_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if nomination is None:
            raise NominationNotFound()
        if not nomination.is_pending():
            raise NominationAlreadyDecided()

        nomination.status = Nomination.STATUS_APPROVED if approve else Nomination.STATUS_REJECTED
        nomination.reviewed_by = str(reviewer)
        nomination.reviewed_at = now
        nomination.rejection_reason = None if approve else reason

    details = {"nomination_id": nomination.id}
    if not approve:
        details["reason"] = reason
    record_event(
        "NOMINATION_APPROVE" if approve else "NOMINATION_REJECT",
        entity_type="NOMINATION",
        entity_id=str(nomination.id),
        details=details,
    )
    # Email after commit; a delivery failure must not undo the decision
    _notify_decision(nomination)
    return nomination


def auto_reject_pending(election: Election, now: datetime) -> list[int]:
    """Reject every PENDING nomination of an election whose voting has started."""
    if election.voting_start > now:
        return []

    with atomic("auto-reject nominations"):
        pending_ids = [
            r.id for r in db.session.query(Nomination.id).filter(
                Nomination.election_id == election.id,
                Nomination.status == Nomination.STATUS_PENDING,
            )
        ]
        rejected = []
        for nid in pending_ids:
            changed = (
                Nomination.query
                .filter(Nomination.id == nid, Nomination.status == Nomination.STATUS_PENDING)
                .update(
                    {
                        "status": Nomination.STATUS_REJECTED,
                        "reviewed_by": SYSTEM_ACTOR,
                        "reviewed_at": now,
                        "rejection_reason": Nomination.AUTO_REJECT_REASON,
                    },
                    synchronize_session=False,
                )
            )
            if changed:
                rejected.append(nid)

    if rejected:
        current_app.logger.info(
            "Auto-rejected %s pending nominations for election %s", len(rejected), election.id
        )
        record_event(
            "NOMINATIONS_AUTO_REJECTED",
            entity_type="ELECTION",
            entity_id=str(election.id),
            actor=SYSTEM_ACTOR,
            details={"election_id": str(election.id), "nomination_ids": rejected},
        )
        for nid in rejected:
            _notify_decision(db.session.get(Nomination, nid))
    return rejected
