from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..exceptions import ElectionNotFound, ResultsNotPublished
from ..models.ballot import AnonymousBallot
from ..models.classroom import Student
from ..models.election import Election
from ..utils import clock
from .candidates import approved_candidates


def tally(election_id) -> list[dict]:
    """
    Per-candidate counts, zero-filled for approved nominees, ordered by
    votes desc then name asc (candidate id breaks any remaining tie).
    """
    rows = (
        db.session.query(
            AnonymousBallot.candidate_id.label("candidate_id"),
            func.count(AnonymousBallot.ballot_id).label("votes"),
        )
        .filter(AnonymousBallot.election_id == election_id)
        .group_by(AnonymousBallot.candidate_id)
        .all()
    )
    counts_map = {r.candidate_id: int(r.votes) for r in rows}
    names = dict(approved_candidates(election_id))

    unnamed = [cid for cid in counts_map if cid not in names]
    if unnamed:
        for s in Student.query.filter(Student.student_id.in_(unnamed)).all():
            names[s.student_id] = s.name

    total_votes = sum(counts_map.values())
    results = []
    for cid in set(names) | set(counts_map):
        v = counts_map.get(cid, 0)
        pct = (v / total_votes * 100.0) if total_votes > 0 else 0.0
        results.append({
            "candidate_id": cid,
            "name": names.get(cid, cid),
            "votes": v,
            "percentage": round(pct, 2),
        })
    results.sort(key=lambda r: (-r["votes"], r["name"], r["candidate_id"]))
    return results


def election_results(election_id, *, admin_view: bool = False, now: datetime | None = None) -> dict:
    election = db.session.get(Election, election_id)
    if election is None:
        raise ElectionNotFound()
    if not admin_view and not election.published:
        raise ResultsNotPublished()

    results = tally(election_id)
    payload = {
        "election_id": str(election.id),
        "class_id": election.class_id,
        "published": bool(election.published),
        "total_votes": sum(r["votes"] for r in results),
        "results": results,
    }
    if admin_view:
        payload["status"] = election.status_at(now or clock.utcnow()).value
    return payload
