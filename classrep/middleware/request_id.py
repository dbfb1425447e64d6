import re
import uuid

from flask import g, request

HEADER = "X-Request-Id"
_ACCEPTED = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _incoming_request_id():
    rid = request.headers.get(HEADER, "").strip()
    # Client ids end up in logs and error bodies; anything odd gets replaced.
    if rid and _ACCEPTED.match(rid):
        return rid
    return uuid.uuid4().hex


def init_request_id(app):
    @app.before_request
    def _assign_request_id():
        g.request_id = _incoming_request_id()

    @app.after_request
    def _add_request_id_header(response):
        if hasattr(g, "request_id"):
            response.headers[HEADER] = g.request_id
        return response
