from ..extensions import db
from ..utils.clock import utcnow


class Policy(db.Model):
    __tablename__ = "policies"

    NOMINATION_POLICY = "Nomination Policy"
    VOTING_POLICY = "Voting Policy"
    NAMES = (NOMINATION_POLICY, VOTING_POLICY)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False, unique=True)
    policy_text = db.Column(db.Text, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PolicyAcceptance(db.Model):
    __tablename__ = "policy_acceptances"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    policy_id = db.Column(db.Integer, db.ForeignKey("policies.id", ondelete="CASCADE"), nullable=False)
    policy_version = db.Column(db.Integer, nullable=False)
    accepted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("user_id", "policy_id", "policy_version", name="uq_policy_acceptances_user_version"),
    )

    @staticmethod
    def has_accepted(user_id: str, policy: Policy) -> bool:
        return (
            db.session.query(PolicyAcceptance.id)
            .filter(
                PolicyAcceptance.user_id == user_id,
                PolicyAcceptance.policy_id == policy.id,
                PolicyAcceptance.policy_version == policy.version,
            )
            .first()
            is not None
        )
