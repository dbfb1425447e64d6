from typing import Optional, Dict, Any
from flask import current_app, has_request_context, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity, get_jwt

from ..extensions import db
from ..models.audit_log import AuditLog

SYSTEM_ACTOR = "SYSTEM"
ANONYMOUS_ACTOR = "ANON"


def _optional_actor():
    """
    Returns (identity, role) or (None, None).
    Works for both authenticated and anonymous requests.
    """
    if not has_request_context():
        return None, None
    try:
        verify_jwt_in_request(optional=True)
        claims = get_jwt()
        return get_jwt_identity(), claims.get("role")
    except Exception:
        return None, None


def _request_origin():
    if not has_request_context():
        return None, None
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    ua = request.headers.get("User-Agent")
    return ip, ua[:255] if ua else None


def audit_log(
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    actor: Optional[str] = None,
    role: Optional[str] = None,
    outcome: str = AuditLog.OUTCOME_SUCCESS,
    anonymous: bool = False,
) -> None:
    """
    Stage an audit row on the current session; the caller commits.

    ``anonymous`` events carry neither the caller's identity nor the request
    origin (IP / user agent).
    """
    if anonymous:
        actor, role = ANONYMOUS_ACTOR, SYSTEM_ACTOR
        ip, ua = None, None
    else:
        jwt_actor, jwt_role = _optional_actor()
        actor = actor or jwt_actor
        role = role or jwt_role
        ip, ua = _request_origin()

    log = AuditLog(
        actor=str(actor) if actor else SYSTEM_ACTOR,
        actor_role=role or SYSTEM_ACTOR,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id else None,
        ip_address=ip,
        user_agent=ua,
        details=details or None,
        outcome=outcome,
    )
    db.session.add(log)


def record_event(action: str, **kwargs) -> None:
    """
    Fire-and-forget audit: writes and commits the row in its own unit of work.
    Never raises; only call once the owning transaction has committed or rolled back.
    """
    try:
        audit_log(action=action, **kwargs)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Audit logging failed: %s", action)
