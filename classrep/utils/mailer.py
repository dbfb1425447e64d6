from flask import current_app
from flask_mail import Mail, Message


class Notifier:
    """
    Best-effort email sink built once per app around the Flask-Mail extension.
    A failed send is logged and never reaches the caller.
    """

    def __init__(self, mail: Mail, sender: str | None = None):
        self.mail = mail
        self.sender = sender

    @classmethod
    def from_app(cls, app, mail: Mail) -> "Notifier":
        notifier = cls(mail, sender=app.config.get("MAIL_DEFAULT_SENDER"))
        app.extensions["notifier"] = notifier
        return notifier

    def send(self, to_email: str | None, subject: str, body: str) -> bool:
        if not to_email:
            return False
        if not self.sender:
            current_app.logger.warning(
                "MAIL_DEFAULT_SENDER is not configured; skipping email %r", subject
            )
            return False
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body, sender=self.sender)
            self.mail.send(msg)
            return True
        except Exception:
            current_app.logger.exception("Email delivery failed: %s", subject)
            return False

    def nomination_decided(self, student, nomination) -> bool:
        if nomination.status == nomination.STATUS_APPROVED:
            subject = "Your nomination has been approved"
            body = (
                f"Dear {student.name},\n\n"
                "Your nomination for Class Representative has been approved. "
                "You will appear on the ballot when voting opens.\n\n"
                "Regards,\nElection Committee"
            )
        else:
            subject = "Your nomination has been rejected"
            reason = nomination.rejection_reason or "No reason provided."
            body = (
                f"Dear {student.name},\n\n"
                "Your nomination for Class Representative was not approved.\n"
                f"Reason: {reason}\n\n"
                "Regards,\nElection Committee"
            )
        return self.send(student.email, subject, body)


def get_notifier() -> Notifier:
    return current_app.extensions["notifier"]
