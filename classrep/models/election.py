import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Uuid
from ..extensions import db
from ..exceptions import InvalidTimeline
from ..utils.clock import utcnow


class ElectionStatus(str, Enum):
    UPCOMING = "UPCOMING"
    NOMINATION = "NOMINATION"
    NOMINATION_CLOSED = "NOMINATION_CLOSED"
    VOTING = "VOTING"
    CLOSED = "CLOSED"


class Election(db.Model):
    __tablename__ = "elections"

    id = db.Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = db.Column(db.Integer, db.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)

    nomination_start = db.Column(db.DateTime, nullable=False)
    nomination_end = db.Column(db.DateTime, nullable=False)
    voting_start = db.Column(db.DateTime, nullable=False)
    voting_end = db.Column(db.DateTime, nullable=False, index=True)

    active = db.Column(db.Boolean, nullable=False, default=False)
    published = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    classroom = db.relationship("ClassRoom", lazy=True)
    nominations = db.relationship(
        "Nomination",
        backref="election",
        lazy=True,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.CheckConstraint(
            "nomination_start <= nomination_end AND nomination_end <= voting_start "
            "AND voting_start <= voting_end",
            name="ck_elections_timeline_ordered",
        ),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.check_timeline()

    def check_timeline(self) -> None:
        stamps = (self.nomination_start, self.nomination_end, self.voting_start, self.voting_end)
        if any(s is None for s in stamps):
            raise InvalidTimeline("All four election dates are required")
        if not (stamps[0] <= stamps[1] <= stamps[2] <= stamps[3]):
            raise InvalidTimeline()

    def in_voting_window(self, now: datetime) -> bool:
        # Both ends inclusive
        return self.voting_start <= now <= self.voting_end

    def voting_open_at(self, now: datetime) -> bool:
        return bool(self.active) and self.in_voting_window(now)

    def in_nomination_window(self, now: datetime) -> bool:
        return self.nomination_start <= now <= self.nomination_end

    def status_at(self, now: datetime) -> ElectionStatus:
        if now < self.nomination_start:
            return ElectionStatus.UPCOMING
        if now <= self.nomination_end:
            return ElectionStatus.NOMINATION
        if now < self.voting_start:
            return ElectionStatus.NOMINATION_CLOSED
        if now <= self.voting_end:
            return ElectionStatus.VOTING
        return ElectionStatus.CLOSED
