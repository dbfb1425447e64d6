from flask import Blueprint
from flasgger import swag_from
from flask_jwt_extended import jwt_required, get_jwt_identity

from ...schemas.vote import VoteSubmitSchema, VoteStatusSchema
from ...services.ballots import cast_vote, has_voted
from ...services.elections import get_election
from ...services.tokens import issue_token
from ...utils.rbac import roles_required, ROLE_STUDENT
from ...utils.validation import validate_or_abort

votes_bp = Blueprint("votes", __name__)
vote_submit_schema = VoteSubmitSchema()
vote_status_schema = VoteStatusSchema()


@votes_bp.get("/election/<uuid:election_id>/token")
@jwt_required()
@roles_required(ROLE_STUDENT)
@swag_from({
    "tags": ["Voting"],
    "summary": "Issue a single-use voting token for the logged-in student",
    "description": (
        "Returns the plaintext token once; only its digest is stored. "
        "Requesting again while unused replaces the previous token. "
        "Students who already voted get status 'already_voted' and no token. "
        "When a Voting Policy exists, its current version must be accepted first."
    ),
    "security": [{"BearerAuth": []}],
    "responses": {
        200: {"description": "Token issued, or already_voted"},
        403: {"description": "NOT_ELIGIBLE / ELECTION_NOT_OPEN / POLICY_NOT_ACCEPTED (Voting Policy)"},
        404: {"description": "Election not found"},
    },
})
def get_token(election_id):
    issue = issue_token(student_id=get_jwt_identity(), election_id=election_id)
    return issue.to_dict(), 200


@votes_bp.post("/", strict_slashes=False)
@jwt_required()
@roles_required(ROLE_STUDENT)
@swag_from({
    "tags": ["Voting"],
    "summary": "Cast an anonymous vote with a voting token",
    "security": [{"BearerAuth": []}],
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "token": {"type": "string"},
                "candidate_id": {"type": "string", "example": "2023CS001"},
                "election_id": {"type": "string", "example": "uuid"},
            },
            "required": ["token", "candidate_id", "election_id"],
        },
    }],
    "responses": {
        201: {"description": "Vote recorded"},
        400: {"description": "VALIDATION_ERROR / INVALID_TOKEN / INVALID_CANDIDATE"},
        403: {"description": "NOT_ELIGIBLE / VOTING_CLOSED"},
        409: {"description": "TOKEN_ALREADY_USED / ALREADY_VOTED"},
        500: {"description": "INTERNAL_FAILURE"},
    },
})
def submit_vote():
    payload = validate_or_abort(vote_submit_schema)
    receipt = cast_vote(
        student_id=get_jwt_identity(),
        token=payload["token"],
        candidate_id=payload["candidate_id"],
        election_id=payload["election_id"],
    )
    return {
        "message": "Vote recorded",
        "election_id": str(receipt.election_id),
        "recorded_at": receipt.recorded_at.isoformat() + "Z",
    }, 201


@votes_bp.get("/election/<uuid:election_id>/status")
@jwt_required()
@roles_required(ROLE_STUDENT)
@swag_from({
    "tags": ["Voting"],
    "summary": "Has the logged-in student voted in this election",
    "security": [{"BearerAuth": []}],
    "responses": {200: {"description": "OK"}, 404: {"description": "Election not found"}},
})
def vote_status(election_id):
    get_election(election_id)
    status = {"election_id": election_id, "has_voted": has_voted(get_jwt_identity(), election_id)}
    return vote_status_schema.dump(status), 200
