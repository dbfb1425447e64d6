from sqlalchemy import Uuid
from ..extensions import db
from ..utils.clock import utcnow


class Nomination(db.Model):
    __tablename__ = "nominations"

    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    VALID_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

    AUTO_REJECT_REASON = "Auto-rejected: voting started before admin decision."

    id = db.Column(db.Integer, primary_key=True)
    election_id = db.Column(Uuid(as_uuid=True), db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = db.Column(db.String(32), db.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True)

    manifesto = db.Column(db.Text, nullable=True)
    photo_url = db.Column(db.String(500), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    reviewed_by = db.Column(db.String(64), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    candidate = db.relationship("Student", lazy="joined")

    __table_args__ = (
        db.UniqueConstraint("election_id", "student_id", name="uq_nominations_election_student"),
        db.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name="ck_nominations_status"
        ),
    )

    def is_pending(self) -> bool:
        return self.status == self.STATUS_PENDING
