from flask import Blueprint
from flasgger import swag_from
from flask_jwt_extended import jwt_required, get_jwt_identity

from ...models.election import Election
from ...schemas.election import ElectionCreateSchema, ElectionReadSchema
from ...services import elections as election_service
from ...utils import clock
from ...utils.rbac import roles_required, ROLE_ADMIN, ROLE_STUDENT
from ...utils.validation import validate_or_abort

elections_bp = Blueprint("elections", __name__)

election_create_schema = ElectionCreateSchema()
election_read_schema = ElectionReadSchema()


def _dump(election: Election, now=None) -> dict:
    data = election_read_schema.dump(election)
    data["status"] = election.status_at(now or clock.utcnow()).value
    return data


@elections_bp.post("/", strict_slashes=False)
@jwt_required()
@roles_required(ROLE_ADMIN)
@swag_from({
    "tags": ["Elections"],
    "summary": "Create an election for a class (admin)",
    "security": [{"BearerAuth": []}],
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "class_id": {"type": "integer", "example": 1},
                "nomination_start": {"type": "string", "example": "2026-01-10T09:00:00Z"},
                "nomination_end": {"type": "string", "example": "2026-01-12T17:00:00Z"},
                "voting_start": {"type": "string", "example": "2026-01-14T09:00:00Z"},
                "voting_end": {"type": "string", "example": "2026-01-14T17:00:00Z"},
            },
            "required": ["class_id", "nomination_start", "nomination_end", "voting_start", "voting_end"],
        },
    }],
    "responses": {201: {"description": "Created"}, 400: {"description": "Validation error"}, 404: {"description": "Class not found"}},
})
def create_election():
    payload = validate_or_abort(election_create_schema)
    election = election_service.create_election(created_by=get_jwt_identity(), **payload)
    return {"message": "Election created", "election": _dump(election)}, 201


@elections_bp.get("/", strict_slashes=False)
@jwt_required()
@swag_from({"tags": ["Elections"], "summary": "List elections", "responses": {200: {"description": "OK"}}})
def list_elections():
    now = clock.utcnow()
    elections = Election.query.order_by(Election.created_at.desc()).all()
    return {"elections": [_dump(e, now) for e in elections]}, 200


@elections_bp.get("/<uuid:election_id>")
@jwt_required()
@swag_from({"tags": ["Elections"], "summary": "Get an election", "responses": {200: {}, 404: {}}})
def get_election(election_id):
    return {"election": _dump(election_service.get_election(election_id))}, 200


@elections_bp.get("/class/<int:class_id>/active")
@jwt_required()
@swag_from({"tags": ["Elections"], "summary": "Active election for a class", "responses": {200: {}, 404: {}}})
def active_election_for_class(class_id):
    election = election_service.active_election_for_class(class_id)
    if election is None:
        return {"message": "No active election"}, 404
    return {"election": _dump(election)}, 200


@elections_bp.post("/<uuid:election_id>/activate")
@jwt_required()
@roles_required(ROLE_ADMIN)
@swag_from({
    "tags": ["Elections"],
    "summary": "Activate an election now: enrol every class member as a voter (admin)",
    "responses": {200: {}, 404: {}, 409: {"description": "Class already has an active election"}},
})
def activate_election(election_id):
    result = election_service.activate_election(election_id, actor=get_jwt_identity())
    return {
        "message": "Election activated" if result.activated else "Election already active",
        "voters_enrolled": result.voters_added,
    }, 200


@elections_bp.post("/<uuid:election_id>/publish")
@jwt_required()
@roles_required(ROLE_ADMIN)
@swag_from({
    "tags": ["Elections"],
    "summary": "Close and publish results after voting has ended (admin)",
    "responses": {200: {}, 404: {}, 409: {"description": "Voting has not ended yet"}},
})
def publish_results(election_id):
    result = election_service.close_election(election_id, actor=get_jwt_identity())
    return {
        "message": "Results published" if result.closed else "Results already published",
        "tokens_expired": result.tokens_expired,
    }, 200


@elections_bp.get("/notifications")
@jwt_required()
@roles_required(ROLE_STUDENT)
@swag_from({"tags": ["Elections"], "summary": "Election notices for the logged-in student", "responses": {200: {}}})
def my_notifications():
    return {"notifications": election_service.notices_for_student(get_jwt_identity())}, 200
