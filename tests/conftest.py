from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from classrep import create_app
from classrep.config import Config
from classrep.extensions import db
from classrep.models import ClassRoom, Election, Nomination, Policy, Student
from classrep.services.elections import activate_election
from classrep.utils.rbac import ROLE_ADMIN, ROLE_STUDENT

# Voting opens at T and closes at T + 2h
T = datetime(2026, 3, 2, 9, 0, 0)


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-key-that-is-long-enough"
    VOTING_TOKEN_SECRET = "test-voting-token-secret"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "elections@college.test"
    LIFECYCLE_CLOCK_ENABLED = False


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def classroom(app):
    room = ClassRoom(name="CSE-A")
    db.session.add(room)
    db.session.commit()
    return room


@pytest.fixture
def make_student(classroom):
    def _make(student_id, name=None, email=None, class_id=None):
        student = Student(
            student_id=student_id,
            name=name or f"Student {student_id}",
            email=email,
            class_id=class_id or classroom.id,
        )
        db.session.add(student)
        db.session.commit()
        return student
    return _make


@pytest.fixture
def make_election(classroom):
    def _make(voting_start=T, class_id=None, **overrides):
        fields = {
            "class_id": class_id or classroom.id,
            "nomination_start": voting_start - timedelta(days=3),
            "nomination_end": voting_start - timedelta(days=1),
            "voting_start": voting_start,
            "voting_end": voting_start + timedelta(hours=2),
        }
        fields.update(overrides)
        election = Election(**fields)
        db.session.add(election)
        db.session.commit()
        return election
    return _make


@pytest.fixture
def nominate():
    def _nominate(election, student, status=Nomination.STATUS_APPROVED):
        nomination = Nomination(election_id=election.id, student_id=student.student_id, status=status)
        db.session.add(nomination)
        db.session.commit()
        return nomination
    return _nominate


@pytest.fixture
def ballot_box(make_student, make_election, nominate):
    """Active election at T with voter V1, V2 and approved candidates C1 (Alice), C2 (Bob)."""
    voters = [make_student("V1", email="v1@college.test"), make_student("V2")]
    alice = make_student("C1", name="Alice")
    bob = make_student("C2", name="Bob")
    election = make_election()
    nominate(election, alice)
    nominate(election, bob)
    activate_election(election.id)
    return {"election": election, "voters": voters, "alice": alice, "bob": bob}


@pytest.fixture
def nomination_policy(app):
    policy = Policy(name=Policy.NOMINATION_POLICY, policy_text="Be honest.", version=1)
    db.session.add(policy)
    db.session.commit()
    return policy


@pytest.fixture
def auth_headers(app):
    def _headers(identity, role=ROLE_STUDENT):
        token = create_access_token(identity=str(identity), additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers("admin-1", ROLE_ADMIN)
