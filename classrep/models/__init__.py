from .classroom import ClassRoom, Student  # noqa: F401
from .election import Election, ElectionStatus  # noqa: F401
from .nomination import Nomination  # noqa: F401
from .eligibility import EligibilityRecord  # noqa: F401
from .voting_token import VotingToken, SpentToken  # noqa: F401
from .ballot import AnonymousBallot  # noqa: F401
from .policy import Policy, PolicyAcceptance  # noqa: F401
from .audit_log import AuditLog  # noqa: F401

# Import ALL models so SQLAlchemy registers them

__all__ = [
    "ClassRoom",
    "Student",
    "Election",
    "ElectionStatus",
    "Nomination",
    "EligibilityRecord",
    "VotingToken",
    "SpentToken",
    "AnonymousBallot",
    "Policy",
    "PolicyAcceptance",
    "AuditLog",
]
