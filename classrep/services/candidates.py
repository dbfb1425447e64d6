from ..extensions import db
from ..exceptions import InvalidCandidate
from ..models.classroom import Student
from ..models.nomination import Nomination


def is_approved(election_id, candidate_id: str) -> bool:
    return (
        db.session.query(Nomination.id)
        .filter(
            Nomination.election_id == election_id,
            Nomination.student_id == str(candidate_id),
            Nomination.status == Nomination.STATUS_APPROVED,
        )
        .first()
        is not None
    )


def require_approved(election_id, candidate_id: str) -> None:
    if not is_approved(election_id, candidate_id):
        raise InvalidCandidate()


def approved_candidates(election_id) -> list[tuple[str, str]]:
    """(candidate_id, name) for every APPROVED nominee, ordered by name."""
    rows = (
        db.session.query(Nomination.student_id, Student.name)
        .join(Student, Student.student_id == Nomination.student_id)
        .filter(
            Nomination.election_id == election_id,
            Nomination.status == Nomination.STATUS_APPROVED,
        )
        .order_by(Student.name.asc(), Nomination.student_id.asc())
        .all()
    )
    return [(r.student_id, r.name) for r in rows]
