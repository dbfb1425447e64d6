from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..exceptions import PolicyNotFound
from ..models.policy import Policy, PolicyAcceptance
from ..utils.audit import record_event
from ..utils.transaction import atomic


def current_policies() -> list[Policy]:
    policies = Policy.query.filter(Policy.name.in_(Policy.NAMES)).all()
    order = {name: i for i, name in enumerate(Policy.NAMES)}
    return sorted(policies, key=lambda p: order[p.name])


def accept_policy(user_id: str, *, policy_id: int | None = None, name: str | None = None) -> Policy:
    if policy_id is not None:
        policy = db.session.get(Policy, policy_id)
    else:
        policy = Policy.query.filter_by(name=name).first()
    if policy is None:
        raise PolicyNotFound()

    if PolicyAcceptance.has_accepted(str(user_id), policy):
        return policy

    try:
        with atomic("accept policy", passthrough=(IntegrityError,)):
            db.session.add(PolicyAcceptance(
                user_id=str(user_id),
                policy_id=policy.id,
                policy_version=policy.version,
            ))
    except IntegrityError:
        # Accepted concurrently; same outcome
        return policy

    record_event(
        "POLICY_ACCEPT",
        entity_type="POLICY",
        entity_id=str(policy.id),
        details={"policy_id": policy.id, "version": policy.version},
    )
    return policy
