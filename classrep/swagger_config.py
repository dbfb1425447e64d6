def swagger_template(app=None):
    title = "Class Representative Election API"
    version = "1.0.0"

    if app:
        title = app.config.get("SWAGGER_TITLE", title)
        version = app.config.get("SWAGGER_VERSION", version)

    return {
        "swagger": "2.0",
        "info": {
            "title": title,
            "version": version,
            "description": "Nominations, anonymous voting and results for class representative elections.",
        },
        "securityDefinitions": {
            "BearerAuth": {
                "type": "apiKey",
                "name": "Authorization",
                "in": "header",
                "description": "JWT Authorization header: Bearer <token>"
            }
        },
        "definitions": {
            "ErrorResponse": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": False},
                    "error": {
                        "type": "object",
                        "properties": {
                            "code": {"type": "string", "example": "TOKEN_ALREADY_USED"},
                            "message": {"type": "string", "example": "Voting token has already been used"},
                            "details": {"type": "object"}
                        }
                    },
                    "request_id": {"type": "string"}
                }
            },
            "TokenIssue": {
                "type": "object",
                "properties": {
                    "status": {"type": "string", "enum": ["issued", "already_voted"]},
                    "token": {"type": "string", "x-nullable": True},
                }
            },
            "VoteReceipt": {
                "type": "object",
                "properties": {
                    "message": {"type": "string", "example": "Vote recorded"},
                    "election_id": {"type": "string", "format": "uuid"},
                    "recorded_at": {"type": "string", "format": "date-time"},
                }
            },
            "CandidateResult": {
                "type": "object",
                "properties": {
                    "candidate_id": {"type": "string"},
                    "name": {"type": "string"},
                    "votes": {"type": "integer"},
                    "percentage": {"type": "number"},
                }
            }
        }
    }
