from flask import Blueprint
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...exceptions import ResultsNotPublished
from ...services.results import election_results
from ...utils.audit import record_event
from ...utils.rbac import is_admin

results_bp = Blueprint("results", __name__)


@results_bp.get("/<uuid:election_id>/results")
@jwt_required()
@swag_from({
    "tags": ["Results"],
    "summary": "Election results (admins anytime; students after publication)",
    "description": (
        "Access rules:\n"
        "- ADMIN: can view results at any time; the response carries a status label "
        "(UPCOMING / NOMINATION / NOMINATION_CLOSED / VOTING / CLOSED).\n"
        "- STUDENT: results are hidden until the election is published.\n"
        "Candidates are ordered by votes (desc) then name (asc); approved candidates "
        "without votes are listed with 0."
    ),
    "responses": {
        200: {"description": "Results"},
        403: {"description": "RESULTS_NOT_PUBLISHED"},
        404: {"description": "Election not found"},
    }
})
def get_results(election_id):
    admin_view = is_admin()
    try:
        payload = election_results(election_id, admin_view=admin_view)
    except ResultsNotPublished:
        record_event(
            "RESULTS_VIEW_DENIED",
            entity_type="ELECTION",
            entity_id=str(election_id),
            details={"reason": "not_published"},
        )
        raise

    record_event(
        "RESULTS_VIEWED",
        entity_type="ELECTION",
        entity_id=str(election_id),
        details={"published": payload["published"], "total_votes": payload["total_votes"]},
    )
    return payload, 200
