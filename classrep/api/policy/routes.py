from flask import Blueprint
from flasgger import swag_from
from flask_jwt_extended import jwt_required, get_jwt_identity

from ...schemas.policy import PolicyAcceptSchema, PolicyReadSchema
from ...services.policy import accept_policy, current_policies
from ...utils.validation import validate_or_abort

policy_bp = Blueprint("policy", __name__)

policy_accept_schema = PolicyAcceptSchema()
policy_read_many_schema = PolicyReadSchema(many=True)


@policy_bp.get("/", strict_slashes=False)
@jwt_required()
@swag_from({"tags": ["Policy"], "summary": "Nomination and Voting policies", "responses": {200: {}}})
def get_policies():
    return {"policies": policy_read_many_schema.dump(current_policies())}, 200


@policy_bp.post("/accept")
@jwt_required()
@swag_from({
    "tags": ["Policy"],
    "summary": "Accept the current version of a policy",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "policy_id": {"type": "integer"},
                "name": {"type": "string", "example": "Nomination Policy"},
            },
        },
    }],
    "responses": {200: {}, 400: {}, 404: {}},
})
def accept():
    payload = validate_or_abort(policy_accept_schema)
    policy = accept_policy(get_jwt_identity(), policy_id=payload.get("policy_id"), name=payload.get("name"))
    return {"message": "Policy accepted successfully", "policy_id": policy.id, "version": policy.version}, 200
