import secrets
import hmac
import hashlib
from flask import current_app


def generate_raw_token(nbytes: int | None = None) -> str:
    if nbytes is None:
        nbytes = current_app.config.get("VOTING_TOKEN_BYTES", 32)
    return secrets.token_hex(nbytes)


def token_digest(raw_token: str) -> str:
    """
    Deterministic digest using HMAC-SHA256 with VOTING_TOKEN_SECRET.
    Safe to store in DB; raw token stays client-side.
    """
    secret = current_app.config["VOTING_TOKEN_SECRET"].encode("utf-8")
    msg = raw_token.encode("utf-8")
    return hmac.new(secret, msg, hashlib.sha256).hexdigest()


def new_ballot_id() -> str:
    # Opaque, carries nothing about the voter
    return secrets.token_hex(16)
