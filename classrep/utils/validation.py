from flask import abort, request
from marshmallow import ValidationError


def validate_or_abort(schema, payload=None):
    """Deserialize ``payload`` (default: the JSON body) or abort with a 400 envelope."""
    if payload is None:
        payload = request.get_json(silent=True) or {}
    try:
        return schema.load(payload)
    except ValidationError as err:
        abort(
            400,
            description={
                "code": "VALIDATION_ERROR",
                "message": "Validation error",
                "errors": err.messages,
            },
        )
