from datetime import datetime, timedelta

import pytest

from evalink.extensions import db
from evalink.models import (
    ActivityLog,
    Evaluation,
    EvaluationAnswer,
    EvaluationCategory,
    EvaluationQuestion,
    EvaluationSchedule,
    Subject,
)

ADMIN = "admin@evalink.test"


@pytest.fixture
def payload(seeded):
    return {
        "faculty_id": "F-001",
        "subject_id": seeded["subject"].id,
        "section_id": seeded["section"].id,
        "answers": {str(q.id): 4 for q in seeded["questions"]},
        "comments": "  Very clear lectures  ",
    }


def test_rubric_lists_categories_in_display_order(client, seeded, as_user):
    db.session.add(EvaluationCategory(name="Empty", display_order=3))
    db.session.commit()

    rubric = client.get("/api/evaluation-questions", headers=as_user("S-001")).get_json()

    assert [c["name"] for c in rubric] == ["Teaching", "Conduct", "Empty"]
    assert [q["text"] for q in rubric[0]["questions"]] == ["Explains clearly", "Well prepared"]
    assert rubric[2]["questions"] == []


def test_duplicate_category_conflicts(client, seeded, as_user):
    response = client.post(
        "/api/evaluation-categories", json={"name": "Teaching"}, headers=as_user(ADMIN)
    )

    assert response.status_code == 409


def test_deleting_category_removes_questions_and_answers(client, seeded, payload, open_window, as_user):
    client.post("/api/evaluations", json=payload, headers=as_user("S-001"))
    teaching = seeded["categories"][0]

    response = client.delete(f"/api/evaluation-categories/{teaching.id}", headers=as_user(ADMIN))

    assert response.status_code == 200
    assert EvaluationQuestion.query.count() == 1
    assert EvaluationAnswer.query.count() == 1


def test_schedule_state_transitions(client, seeded, as_user):
    def get_state():
        return client.get("/api/evaluation-schedule", headers=as_user("S-001")).get_json()

    assert get_state() == {"start_date": None, "end_date": None, "state": "unset"}

    now = datetime.now()
    windows = [
        (now + timedelta(days=1), now + timedelta(days=2), "upcoming"),
        (now - timedelta(days=1), now + timedelta(days=1), "open"),
        (now - timedelta(days=2), now - timedelta(days=1), "ended"),
    ]
    for start, end, expected in windows:
        response = client.post(
            "/api/evaluation-schedule",
            json={"start_date": start.isoformat(), "end_date": end.isoformat()},
            headers=as_user(ADMIN),
        )
        assert response.status_code == 200
        assert get_state()["state"] == expected
    assert EvaluationSchedule.query.count() == 1


def test_schedule_rejects_inverted_window(client, seeded, as_user):
    response = client.post(
        "/api/evaluation-schedule",
        json={"start_date": "2024-06-02T00:00", "end_date": "2024-06-01T00:00"},
        headers=as_user(ADMIN),
    )

    assert response.status_code == 400


def test_submit_evaluation(client, seeded, payload, open_window, as_user):
    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 201
    evaluation = Evaluation.query.one()
    assert evaluation.comments == "Very clear lectures"
    assert EvaluationAnswer.query.filter_by(evaluation_id=evaluation.id).count() == 3
    assert ActivityLog.query.filter_by(user_id="S-001", activity_type="evaluation").count() == 1

    evaluated = client.get("/api/students/S-001/evaluated-subjects", headers=as_user("S-001"))
    assert evaluated.get_json() == [seeded["subject"].id]


def test_submission_requires_open_window(client, seeded, payload, as_user):
    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 403
    assert Evaluation.query.count() == 0


def test_duplicate_submission_conflicts(client, seeded, payload, open_window, as_user):
    client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 409
    assert Evaluation.query.count() == 1


@pytest.mark.parametrize("rating", [0, 6, 4.5, 4.7, "4.5", "abc", None, True])
def test_out_of_range_rating_is_rejected(client, seeded, payload, open_window, as_user, rating):
    first_question = next(iter(payload["answers"]))
    payload["answers"][first_question] = rating

    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 400
    assert Evaluation.query.count() == 0
    assert EvaluationAnswer.query.count() == 0


def test_numeric_string_ratings_are_accepted(client, seeded, payload, open_window, as_user):
    payload["answers"] = {key: "5" for key in payload["answers"]}

    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 201
    assert {answer.rating for answer in EvaluationAnswer.query.all()} == {5}


def test_non_object_body_is_rejected(client, seeded, open_window, as_user):
    response = client.post("/api/evaluations", json=[1, 2], headers=as_user("S-001"))

    assert response.status_code == 400
    assert Evaluation.query.count() == 0


def test_unknown_question_is_rejected(client, seeded, payload, open_window, as_user):
    payload["answers"]["9999"] = 5

    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 400
    assert Evaluation.query.count() == 0


def test_student_must_be_enrolled_with_faculty(client, seeded, payload, open_window, as_user):
    payload["faculty_id"] = "F-999"

    response = client.post("/api/evaluations", json=payload, headers=as_user("S-001"))

    assert response.status_code == 403


def test_only_students_submit(client, seeded, payload, open_window, as_user):
    response = client.post("/api/evaluations", json=payload, headers=as_user("F-001"))

    assert response.status_code == 403


def _add_evaluation(student_id, subject_id, question_id, rating, submitted_at):
    evaluation = Evaluation(
        student_id=student_id,
        faculty_id="F-001",
        subject_id=subject_id,
        submitted_at=submitted_at,
        comments=f"{student_id} on {submitted_at:%b %d}",
    )
    db.session.add(evaluation)
    db.session.flush()
    db.session.add(EvaluationAnswer(evaluation_id=evaluation.id, question_id=question_id, rating=rating))
    return evaluation


def test_evaluation_listing_and_daily_stats(client, seeded, as_user):
    algebra = Subject(code="MATH101", name="College Algebra")
    db.session.add(algebra)
    db.session.flush()
    question_id = seeded["questions"][0].id
    _add_evaluation("S-001", seeded["subject"].id, question_id, 5, datetime(2024, 5, 1, 9))
    _add_evaluation("S-002", seeded["subject"].id, question_id, 3, datetime(2024, 5, 3, 10))
    _add_evaluation("S-002", algebra.id, question_id, 4, datetime(2024, 5, 3, 15))
    db.session.commit()

    listing = client.get("/api/evaluations", headers=as_user(ADMIN)).get_json()
    assert [row["course"] for row in listing] == [
        "College Algebra",
        "Intro to Programming",
        "Intro to Programming",
    ]
    assert [row["rating"] for row in listing] == [4.0, 3.0, 5.0]

    stats = client.get(
        "/api/evaluations/stats/daily?days=7&today=2024-05-04", headers=as_user(ADMIN)
    ).get_json()
    assert stats == [
        {"evaluation_date": "2024-05-01", "evaluation_count": 1},
        {"evaluation_date": "2024-05-03", "evaluation_count": 2},
    ]

    narrow = client.get(
        "/api/evaluations/stats/daily?days=2&today=2024-05-04", headers=as_user(ADMIN)
    ).get_json()
    assert narrow == [{"evaluation_date": "2024-05-03", "evaluation_count": 2}]
