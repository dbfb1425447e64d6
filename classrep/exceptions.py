"""
Domain errors for elections, nominations and the voting protocol.

Every error carries a stable ``kind`` (rendered as the ``error.code`` of the
response envelope) so clients branch on codes instead of message text.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    ELECTION_NOT_OPEN = "ELECTION_NOT_OPEN"
    VOTING_CLOSED = "VOTING_CLOSED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_ALREADY_USED = "TOKEN_ALREADY_USED"
    ALREADY_VOTED = "ALREADY_VOTED"
    INVALID_CANDIDATE = "INVALID_CANDIDATE"
    POLICY_NOT_ACCEPTED = "POLICY_NOT_ACCEPTED"
    INTERNAL_FAILURE = "INTERNAL_FAILURE"

    ELECTION_NOT_FOUND = "ELECTION_NOT_FOUND"
    NOMINATION_NOT_FOUND = "NOMINATION_NOT_FOUND"
    POLICY_NOT_FOUND = "POLICY_NOT_FOUND"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
    INVALID_TIMELINE = "INVALID_TIMELINE"
    NOMINATION_WINDOW_CLOSED = "NOMINATION_WINDOW_CLOSED"
    NOMINATION_EXISTS = "NOMINATION_EXISTS"
    NOMINATION_ALREADY_DECIDED = "NOMINATION_ALREADY_DECIDED"
    ACTIVE_ELECTION_EXISTS = "ACTIVE_ELECTION_EXISTS"
    ELECTION_NOT_CLOSED = "ELECTION_NOT_CLOSED"
    RESULTS_NOT_PUBLISHED = "RESULTS_NOT_PUBLISHED"


class ElectionError(Exception):
    kind = ErrorKind.INTERNAL_FAILURE
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class NotEligible(ElectionError):
    kind = ErrorKind.NOT_ELIGIBLE
    status_code = 403
    default_message = "Student not eligible to vote in this election"


class ElectionNotOpen(ElectionError):
    kind = ErrorKind.ELECTION_NOT_OPEN
    status_code = 403
    default_message = "Voting is not open for this election"


class VotingClosed(ElectionError):
    kind = ErrorKind.VOTING_CLOSED
    status_code = 403
    default_message = "Voting has closed for this election"


class InvalidToken(ElectionError):
    kind = ErrorKind.INVALID_TOKEN
    status_code = 400
    default_message = "Invalid voting token"


class TokenAlreadyUsed(ElectionError):
    kind = ErrorKind.TOKEN_ALREADY_USED
    status_code = 409
    default_message = "This voting token has already been used"


class AlreadyVoted(ElectionError):
    kind = ErrorKind.ALREADY_VOTED
    status_code = 409
    default_message = "You have already cast your vote for this election"


class InvalidCandidate(ElectionError):
    kind = ErrorKind.INVALID_CANDIDATE
    status_code = 400
    default_message = "Candidate is not an approved nominee for this election"


class PolicyNotAccepted(ElectionError):
    kind = ErrorKind.POLICY_NOT_ACCEPTED
    status_code = 403
    default_message = "Policy must be accepted before nomination"


class InternalFailure(ElectionError):
    kind = ErrorKind.INTERNAL_FAILURE
    status_code = 500


class ElectionNotFound(ElectionError):
    kind = ErrorKind.ELECTION_NOT_FOUND
    status_code = 404
    default_message = "Election not found"


class NominationNotFound(ElectionError):
    kind = ErrorKind.NOMINATION_NOT_FOUND
    status_code = 404
    default_message = "Nomination not found"


class PolicyNotFound(ElectionError):
    kind = ErrorKind.POLICY_NOT_FOUND
    status_code = 404
    default_message = "Policy not found"


class ClassNotFound(ElectionError):
    kind = ErrorKind.CLASS_NOT_FOUND
    status_code = 404
    default_message = "Class not found"


class InvalidTimeline(ElectionError):
    kind = ErrorKind.INVALID_TIMELINE
    status_code = 400
    default_message = (
        "Election dates must satisfy nomination_start <= nomination_end "
        "<= voting_start <= voting_end"
    )


class NominationWindowClosed(ElectionError):
    kind = ErrorKind.NOMINATION_WINDOW_CLOSED
    status_code = 403
    default_message = "Nomination window closed"


class NominationExists(ElectionError):
    kind = ErrorKind.NOMINATION_EXISTS
    status_code = 409
    default_message = "You have already submitted a nomination for this election"


class NominationAlreadyDecided(ElectionError):
    kind = ErrorKind.NOMINATION_ALREADY_DECIDED
    status_code = 409
    default_message = "Nomination has already been reviewed"


class ActiveElectionExists(ElectionError):
    kind = ErrorKind.ACTIVE_ELECTION_EXISTS
    status_code = 409
    default_message = "Class already has an active election"


class ElectionNotClosed(ElectionError):
    kind = ErrorKind.ELECTION_NOT_CLOSED
    status_code = 409
    default_message = "Results can only be published after voting ends"


class ResultsNotPublished(ElectionError):
    kind = ErrorKind.RESULTS_NOT_PUBLISHED
    status_code = 403
    default_message = "Results are not available yet"
