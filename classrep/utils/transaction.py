from contextlib import contextmanager
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..exceptions import ElectionError, InternalFailure


@contextmanager
def atomic(label: str, passthrough: tuple = ()):
    """
    Commit on success; roll back on any error. Domain errors and ``passthrough``
    types propagate as-is, other DB errors are logged and surfaced as InternalFailure.
    """
    try:
        yield db.session
        db.session.commit()
    except ElectionError:
        db.session.rollback()
        raise
    except passthrough:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("DB error: %s", label)
        raise InternalFailure(f"Failed to {label}") from exc
    except Exception:
        db.session.rollback()
        raise
