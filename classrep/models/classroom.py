from ..extensions import db
from ..utils.clock import utcnow


class ClassRoom(db.Model):
    __tablename__ = "classes"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    students = db.relationship("Student", backref="classroom", lazy=True)


class Student(db.Model):
    __tablename__ = "students"

    student_id = db.Column(db.String(32), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    class_id = db.Column(db.Integer, db.ForeignKey("classes.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @staticmethod
    def members_of(class_id: int) -> list[str]:
        rows = (
            db.session.query(Student.student_id)
            .filter(Student.class_id == class_id)
            .order_by(Student.student_id.asc())
            .all()
        )
        return [r.student_id for r in rows]
