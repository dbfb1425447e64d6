"""
Periodic election lifecycle sweep.

Each step handles one election at a time in its own transaction with
conditional writes, so a re-run (or two sweeps racing in different worker
processes) never duplicates rows or repeats a transition. A failing election
is logged and skipped; the rest of the sweep carries on.
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..exceptions import ActiveElectionExists
from ..models.election import Election
from ..models.nomination import Nomination
from ..utils import clock
from .elections import activate_election, close_election, get_election
from .nominations import auto_reject_pending


@dataclass
class SweepReport:
    now: datetime
    rejected_nominations: list = field(default_factory=list)
    closed: list = field(default_factory=list)
    activated: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    failed: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "now": self.now.isoformat() + "Z",
            "rejected_nominations": list(self.rejected_nominations),
            "closed": [str(e) for e in self.closed],
            "activated": [str(e) for e in self.activated],
            "skipped": [str(e) for e in self.skipped],
            "failed": [str(e) for e in self.failed],
        }


def _each(election_ids, step: str, report: SweepReport, fn) -> None:
    for election_id in election_ids:
        try:
            fn(election_id)
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Lifecycle %s failed for election %s", step, election_id)
            report.failed.append(election_id)


def auto_reject_nominations(now: datetime, report: SweepReport) -> None:
    election_ids = [
        r.id for r in db.session.query(Election.id)
        .join(Nomination, Nomination.election_id == Election.id)
        .filter(Nomination.status == Nomination.STATUS_PENDING, Election.voting_start <= now)
        .distinct()
    ]

    def step(election_id):
        report.rejected_nominations.extend(auto_reject_pending(get_election(election_id), now))

    _each(election_ids, "auto-reject", report, step)


def auto_close_elections(now: datetime, report: SweepReport) -> None:
    election_ids = [
        r.id for r in db.session.query(Election.id)
        .filter(Election.published.is_(False), Election.voting_end < now)
        .order_by(Election.voting_end.asc())
    ]

    def step(election_id):
        if close_election(election_id, now=now, auto=True).closed:
            report.closed.append(election_id)

    _each(election_ids, "auto-close", report, step)


def auto_activate_elections(now: datetime, report: SweepReport) -> None:
    election_ids = [
        r.id for r in db.session.query(Election.id)
        .filter(
            Election.active.is_(False),
            Election.published.is_(False),
            Election.nomination_start <= now,
            Election.voting_end >= now,
        )
        .order_by(Election.nomination_start.asc(), Election.created_at.asc())
    ]

    def step(election_id):
        try:
            if activate_election(election_id, auto=True).activated:
                report.activated.append(election_id)
        except ActiveElectionExists:
            # One active election per class; try again on a later sweep
            report.skipped.append(election_id)

    _each(election_ids, "auto-activate", report, step)


def run_lifecycle_sweep(now: datetime | None = None) -> SweepReport:
    now = now or clock.utcnow()
    report = SweepReport(now=now)
    auto_reject_nominations(now, report)
    auto_close_elections(now, report)
    auto_activate_elections(now, report)
    return report


class LifecycleClock:
    """Runs the sweep on a fixed interval in a daemon thread, independent of requests."""

    def __init__(self, app, interval: float | None = None):
        self.app = app
        self.interval = interval or app.config.get("LIFECYCLE_INTERVAL_SECONDS", 60)
        self._stop = threading.Event()
        self._thread = None

    def start(self) -> "LifecycleClock":
        if self._thread is not None and self._thread.is_alive():
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="lifecycle-clock", daemon=True)
        self._thread.start()
        self.app.logger.info("Lifecycle clock started (every %ss)", self.interval)
        return self

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def tick(self) -> SweepReport | None:
        with self.app.app_context():
            try:
                return run_lifecycle_sweep()
            except Exception:
                db.session.rollback()
                self.app.logger.exception("Lifecycle sweep failed")
                return None

    def _run(self) -> None:
        while not self._stop.is_set():
            self.tick()
            self._stop.wait(self.interval)
