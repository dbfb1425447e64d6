import uuid
from datetime import timedelta

import pytest

from classrep.exceptions import (
    ElectionNotFound,
    NominationAlreadyDecided,
    NominationExists,
    NominationNotFound,
    NominationWindowClosed,
    NotEligible,
    PolicyNotAccepted,
    PolicyNotFound,
)
from classrep.extensions import db, mail
from classrep.models import AuditLog, ClassRoom, Nomination, Policy, PolicyAcceptance
from classrep.services.candidates import approved_candidates, is_approved
from classrep.services.nominations import list_for_election, review_nomination, submit_nomination
from classrep.services.policy import accept_policy, current_policies

from conftest import T

IN_WINDOW = T - timedelta(days=2)


def test_submit_within_window(make_student, make_election):
    make_student("S1")
    election = make_election()

    nomination = submit_nomination(student_id="S1", election_id=election.id, manifesto="More labs", now=IN_WINDOW)

    assert nomination.status == Nomination.STATUS_PENDING
    assert nomination.manifesto == "More labs"
    assert AuditLog.query.filter_by(action="NOMINATION_SUBMITTED").count() == 1


def test_window_edges_are_inclusive(make_student, make_election):
    make_student("S1")
    make_student("S2")
    election = make_election()

    submit_nomination(student_id="S1", election_id=election.id, now=T - timedelta(days=3))
    submit_nomination(student_id="S2", election_id=election.id, now=T - timedelta(days=1))

    assert Nomination.query.filter_by(election_id=election.id).count() == 2


def test_submit_outside_window(make_student, make_election):
    make_student("S1")
    election = make_election()

    with pytest.raises(NominationWindowClosed):
        submit_nomination(student_id="S1", election_id=election.id, now=T - timedelta(hours=23))
    with pytest.raises(NominationWindowClosed):
        submit_nomination(student_id="S1", election_id=election.id, now=T - timedelta(days=3, seconds=1))


def test_only_once_per_election(make_student, make_election):
    make_student("S1")
    election = make_election()
    submit_nomination(student_id="S1", election_id=election.id, now=IN_WINDOW)

    with pytest.raises(NominationExists):
        submit_nomination(student_id="S1", election_id=election.id, now=IN_WINDOW)


def test_only_students_of_the_class(make_student, make_election):
    other = ClassRoom(name="MECH-B")
    db.session.add(other)
    db.session.commit()
    make_student("X1", class_id=other.id)
    election = make_election()

    with pytest.raises(NotEligible):
        submit_nomination(student_id="X1", election_id=election.id, now=IN_WINDOW)


def test_unknown_election(app):
    with pytest.raises(ElectionNotFound):
        submit_nomination(student_id="S1", election_id=uuid.uuid4(), now=IN_WINDOW)


def test_nomination_policy_must_be_accepted(make_student, make_election, nomination_policy):
    make_student("S1")
    election = make_election()

    with pytest.raises(PolicyNotAccepted):
        submit_nomination(student_id="S1", election_id=election.id, now=IN_WINDOW)

    accept_policy("S1", name=Policy.NOMINATION_POLICY)
    assert submit_nomination(student_id="S1", election_id=election.id, now=IN_WINDOW).is_pending()


def test_new_policy_version_needs_a_new_acceptance(make_student, make_election, nomination_policy):
    make_student("S1")
    election = make_election()
    accept_policy("S1", policy_id=nomination_policy.id)
    nomination_policy.version = 2
    db.session.commit()

    with pytest.raises(PolicyNotAccepted):
        submit_nomination(student_id="S1", election_id=election.id, now=IN_WINDOW)


def test_accepting_twice_is_harmless(nomination_policy):
    accept_policy("S1", policy_id=nomination_policy.id)
    accept_policy("S1", name=Policy.NOMINATION_POLICY)

    assert PolicyAcceptance.query.filter_by(user_id="S1").count() == 1
    assert AuditLog.query.filter_by(action="POLICY_ACCEPT").count() == 1


def test_unknown_policy(app):
    with pytest.raises(PolicyNotFound):
        accept_policy("S1", name="Dress Code")


def test_current_policies_in_fixed_order(nomination_policy):
    db.session.add(Policy(name=Policy.VOTING_POLICY, policy_text="One vote each.", version=1))
    db.session.commit()

    assert [p.name for p in current_policies()] == [Policy.NOMINATION_POLICY, Policy.VOTING_POLICY]


def test_approve_notifies_the_candidate(make_student, make_election, nominate):
    candidate = make_student("S1", name="Alice", email="alice@college.test")
    election = make_election()
    nomination = nominate(election, candidate, status=Nomination.STATUS_PENDING)

    with mail.record_messages() as outbox:
        reviewed = review_nomination(nomination.id, approve=True, reviewer="admin-1", now=IN_WINDOW)

    assert reviewed.status == Nomination.STATUS_APPROVED
    assert reviewed.reviewed_by == "admin-1"
    assert reviewed.reviewed_at == IN_WINDOW
    assert is_approved(election.id, "S1") is True
    assert approved_candidates(election.id) == [("S1", "Alice")]
    assert [m.subject for m in outbox] == ["Your nomination has been approved"]


def test_reject_keeps_the_reason(make_student, make_election, nominate):
    candidate = make_student("S1", email="s1@college.test")
    election = make_election()
    nomination = nominate(election, candidate, status=Nomination.STATUS_PENDING)

    with mail.record_messages() as outbox:
        reviewed = review_nomination(nomination.id, approve=False, reviewer="admin-1", reason="Incomplete manifesto")

    assert reviewed.status == Nomination.STATUS_REJECTED
    assert reviewed.rejection_reason == "Incomplete manifesto"
    assert is_approved(election.id, "S1") is False
    assert "Incomplete manifesto" in outbox[0].body
    entry = AuditLog.query.filter_by(action="NOMINATION_REJECT").one()
    assert entry.details["reason"] == "Incomplete manifesto"


def test_decision_is_final(make_student, make_election, nominate):
    candidate = make_student("S1")
    election = make_election()
    nomination = nominate(election, candidate, status=Nomination.STATUS_PENDING)
    review_nomination(nomination.id, approve=True, reviewer="admin-1")

    with pytest.raises(NominationAlreadyDecided):
        review_nomination(nomination.id, approve=False, reviewer="admin-2")
    assert db.session.get(Nomination, nomination.id).status == Nomination.STATUS_APPROVED


def test_unknown_nomination(app):
    with pytest.raises(NominationNotFound):
        review_nomination(12345, approve=True, reviewer="admin-1")


def test_missing_email_skips_notification(make_student, make_election, nominate):
    candidate = make_student("S1")
    election = make_election()
    nomination = nominate(election, candidate, status=Nomination.STATUS_PENDING)

    with mail.record_messages() as outbox:
        review_nomination(nomination.id, approve=True, reviewer="admin-1")

    assert outbox == []


def test_list_for_election(make_student, make_election, nominate):
    election = make_election()
    first = nominate(election, make_student("S1"))
    second = nominate(election, make_student("S2"), status=Nomination.STATUS_PENDING)

    assert [n.id for n in list_for_election(election.id)] == [first.id, second.id]
