import uuid
from sqlalchemy import Uuid
from ..extensions import db
from ..utils.clock import utcnow


class VotingToken(db.Model):
    __tablename__ = "voting_tokens"

    id = db.Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    election_id = db.Column(Uuid(as_uuid=True), db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)

    # Both cleared when the token is consumed or expired
    student_id = db.Column(db.String(32), nullable=True, index=True)
    # Store only a hash of the token for security
    token_hash = db.Column(db.String(64), nullable=True, unique=True, index=True)

    used = db.Column(db.Boolean, nullable=False, default=False)
    used_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        # NULLs are distinct, so this only binds unused tokens: one per voter per election
        db.UniqueConstraint("student_id", "election_id", name="uq_voting_tokens_student_election"),
        db.CheckConstraint(
            "(used AND student_id IS NULL AND token_hash IS NULL) OR "
            "(NOT used AND student_id IS NOT NULL AND token_hash IS NOT NULL)",
            name="ck_voting_tokens_link_matches_state",
        ),
    )


class SpentToken(db.Model):
    """
    Digest of every redeemed token, kept without voter, token row or time so a
    replayed plaintext can be told apart from a forged one.
    """

    __tablename__ = "spent_tokens"

    id = db.Column(db.Integer, primary_key=True)
    election_id = db.Column(Uuid(as_uuid=True), db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("election_id", "token_hash", name="uq_spent_tokens_election_hash"),
    )
