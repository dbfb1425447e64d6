from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from ..extensions import db
from ..utils.clock import utcnow


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    OUTCOME_SUCCESS = "SUCCESS"
    OUTCOME_FAILURE = "FAILURE"

    id = db.Column(db.Integer, primary_key=True)

    # Who performed the action: a user id, "SYSTEM" for the lifecycle sweep, "ANON" for ballots
    actor = db.Column(db.String(64), nullable=False, index=True)
    actor_role = db.Column(db.String(30), nullable=False)

    # What happened
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. VOTE_CAST
    entity_type = db.Column(db.String(50), nullable=True, index=True)  # e.g. ELECTION, VOTE
    entity_id = db.Column(db.String(64), nullable=True, index=True)

    # Request context (never set for anonymous events)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    details = db.Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    outcome = db.Column(db.String(10), nullable=False, default=OUTCOME_SUCCESS)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
