import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///classrep.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-dev-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        minutes=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_MIN", "30"))
    )

    # Voting tokens: HMAC key for digests, entropy of the plaintext secret
    VOTING_TOKEN_SECRET = os.getenv("VOTING_TOKEN_SECRET", SECRET_KEY)
    VOTING_TOKEN_BYTES = int(os.getenv("VOTING_TOKEN_BYTES", "32"))

    # Election lifecycle sweep
    LIFECYCLE_CLOCK_ENABLED = _flag("LIFECYCLE_CLOCK_ENABLED", "false")
    LIFECYCLE_INTERVAL_SECONDS = int(os.getenv("LIFECYCLE_INTERVAL_SECONDS", "60"))

    # Mail (SMTP)
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _flag("MAIL_USE_TLS", "true")
    MAIL_USE_SSL = _flag("MAIL_USE_SSL", "false")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)
    SWAGGER = {"title": "Class Representative Election API", "uiversion": 3}
