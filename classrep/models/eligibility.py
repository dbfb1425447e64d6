from sqlalchemy import Uuid
from ..extensions import db


class EligibilityRecord(db.Model):
    """One row per (voter, election); ``has_voted`` only ever flips false -> true."""

    __tablename__ = "voter_eligibility"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.String(32), db.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)
    election_id = db.Column(Uuid(as_uuid=True), db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)

    has_voted = db.Column(db.Boolean, nullable=False, default=False)
    voted_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("student_id", "election_id", name="uq_voter_eligibility_student_election"),
    )
