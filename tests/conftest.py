import dataclasses
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from evalink import create_app
from evalink.config import AppConfig
from evalink.extensions import db
from evalink.models import (
    Department,
    EvaluationCategory,
    EvaluationQuestion,
    EvaluationSchedule,
    FacultySubject,
    Section,
    StudentSubject,
    Subject,
    User,
)

PASSWORD = "secret123"


@pytest.fixture
def app(tmp_path):
    config = dataclasses.replace(
        AppConfig.from_env(),
        database_url="sqlite://",
        secret_key="test-secret",
        allow_mock_auth=True,
        upload_folder=tmp_path / "uploads",
        default_admin_email="admin@evalink.test",
        default_admin_password="admin123",
    )
    app = create_app(config)
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def as_user():
    def _headers(user_id):
        return {"X-Mock-User-Id": user_id}

    return _headers


@pytest.fixture
def seeded(app):
    """Admin, one faculty, two students, a subject/section and a two-category rubric."""
    department = Department(name="Computer Science")
    db.session.add(department)
    db.session.flush()
    section = Section(name="BSCS 1-A", department_id=department.id, year_level=1)
    subject = Subject(code="CS101", name="Intro to Programming", department_id=department.id, year_level=1)
    db.session.add_all([section, subject])
    db.session.flush()

    users = [
        User(id="admin@evalink.test", email="admin@evalink.test", name="Admin", role="admin"),
        User(id="F-001", name="Dr. Reyes", role="faculty", department_id=department.id),
        User(id="S-001", name="Ana Cruz", role="student", section_id=section.id, year_level=1),
        User(id="S-002", name="Ben Lim", role="student", section_id=section.id, year_level=1),
    ]
    for user in users:
        user.password_hash = generate_password_hash(PASSWORD)
    db.session.add_all(users)

    teaching = EvaluationCategory(name="Teaching", display_order=1)
    conduct = EvaluationCategory(name="Conduct", display_order=2)
    db.session.add_all([teaching, conduct])
    db.session.flush()
    q1 = EvaluationQuestion(category_id=teaching.id, text="Explains clearly", display_order=1)
    q2 = EvaluationQuestion(category_id=teaching.id, text="Well prepared", display_order=2)
    q3 = EvaluationQuestion(category_id=conduct.id, text="Punctual", display_order=1)
    db.session.add_all([q1, q2, q3])

    db.session.add(FacultySubject(faculty_id="F-001", subject_id=subject.id, section_id=section.id))
    for student_id in ("S-001", "S-002"):
        db.session.add(
            StudentSubject(
                student_id=student_id,
                subject_id=subject.id,
                faculty_id="F-001",
                section_id=section.id,
            )
        )
    db.session.commit()
    return {
        "department": department,
        "section": section,
        "subject": subject,
        "categories": [teaching, conduct],
        "questions": [q1, q2, q3],
    }


@pytest.fixture
def open_window(app):
    now = datetime.now()
    db.session.add(
        EvaluationSchedule(id=1, start_date=now - timedelta(days=1), end_date=now + timedelta(days=1))
    )
    db.session.commit()
