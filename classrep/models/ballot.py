from sqlalchemy import Uuid
from ..extensions import db


class AnonymousBallot(db.Model):
    __tablename__ = "anonymous_ballots"

    # Random key only: no sequence, so key order says nothing about cast order
    ballot_id = db.Column(db.String(32), primary_key=True)
    election_id = db.Column(Uuid(as_uuid=True), db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = db.Column(db.String(32), nullable=False, index=True)

    # No voter reference and no timestamp: either could be joined back to voter_eligibility.voted_at
    __table_args__ = (
        db.Index("ix_anonymous_ballots_election_candidate", "election_id", "candidate_id"),
        {"sqlite_with_rowid": False},
    )
