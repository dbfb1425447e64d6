from flask import Blueprint
from flasgger import swag_from
from flask_jwt_extended import jwt_required, get_jwt_identity

from ...schemas.nomination import NominationCreateSchema, NominationRejectSchema, NominationReadSchema
from ...services import nominations as nomination_service
from ...utils.rbac import roles_required, ROLE_ADMIN, ROLE_STUDENT
from ...utils.validation import validate_or_abort

nominations_bp = Blueprint("nominations", __name__)

nomination_create_schema = NominationCreateSchema()
nomination_reject_schema = NominationRejectSchema()
nomination_read_schema = NominationReadSchema()
nomination_read_many_schema = NominationReadSchema(many=True)


@nominations_bp.post("/", strict_slashes=False)
@jwt_required()
@roles_required(ROLE_STUDENT)
@swag_from({
    "tags": ["Nominations"],
    "summary": "Nominate yourself in your class election",
    "description": "Only during the nomination window, once per election, after accepting the Nomination Policy.",
    "security": [{"BearerAuth": []}],
    "responses": {
        201: {"description": "Nomination submitted (PENDING)"},
        403: {"description": "NOMINATION_WINDOW_CLOSED / POLICY_NOT_ACCEPTED / NOT_ELIGIBLE"},
        409: {"description": "NOMINATION_EXISTS"},
    },
})
def submit_nomination():
    payload = validate_or_abort(nomination_create_schema)
    nomination = nomination_service.submit_nomination(student_id=get_jwt_identity(), **payload)
    return {"message": "Nomination submitted", "nomination": nomination_read_schema.dump(nomination)}, 201


@nominations_bp.get("/election/<uuid:election_id>")
@jwt_required()
@swag_from({"tags": ["Nominations"], "summary": "List nominations of an election", "responses": {200: {}, 404: {}}})
def list_by_election(election_id):
    nominations = nomination_service.list_for_election(election_id)
    return {"nominations": nomination_read_many_schema.dump(nominations)}, 200


@nominations_bp.put("/<int:nomination_id>/approve")
@jwt_required()
@roles_required(ROLE_ADMIN)
@swag_from({
    "tags": ["Nominations"],
    "summary": "Approve a pending nomination (admin)",
    "responses": {200: {}, 404: {}, 409: {"description": "Already reviewed"}},
})
def approve_nomination(nomination_id):
    nomination = nomination_service.review_nomination(nomination_id, approve=True, reviewer=get_jwt_identity())
    return {"message": "Nomination approved", "nomination": nomination_read_schema.dump(nomination)}, 200


@nominations_bp.put("/<int:nomination_id>/reject")
@jwt_required()
@roles_required(ROLE_ADMIN)
@swag_from({
    "tags": ["Nominations"],
    "summary": "Reject a pending nomination (admin)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": False,
        "schema": {"type": "object", "properties": {"reason": {"type": "string"}}},
    }],
    "responses": {200: {}, 404: {}, 409: {"description": "Already reviewed"}},
})
def reject_nomination(nomination_id):
    payload = validate_or_abort(nomination_reject_schema)
    nomination = nomination_service.review_nomination(
        nomination_id, approve=False, reviewer=get_jwt_identity(), reason=payload.get("reason")
    )
    return {"message": "Nomination rejected", "nomination": nomination_read_schema.dump(nomination)}, 200
