import pytest

from evalink.services.aggregation import (
    AggregationError,
    aggregate_by_faculty,
    aggregate_subjects,
    round_rating,
)


def make_row(evaluation_id, question_id, rating, **overrides):
    row = {
        "faculty_id": "F-001",
        "faculty_name": "Dr. Reyes",
        "subject_id": 1,
        "subject_name": "Intro to Programming",
        "subject_code": "CS101",
        "category_name": "Teaching",
        "question_id": question_id,
        "question_text": f"Question {question_id}",
        "rating": rating,
        "evaluation_id": evaluation_id,
        "comments": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def cs101_rows():
    return [
        make_row(1, 1, 5, comments="Great!"),
        make_row(1, 2, 4, comments="Great!"),
        make_row(2, 1, 3, comments=""),
        make_row(2, 2, 3, comments=""),
    ]


def test_cs101_example(cs101_rows):
    [subject] = aggregate_subjects(cs101_rows)

    assert subject["subject_code"] == "CS101"
    assert subject["overall_average"] == 3.75
    assert subject["total_evaluations"] == 2
    assert subject["comments"] == ["Great!"]
    questions = subject["detailed_results"][0]["questions"]
    assert [q["average_rating"] for q in questions] == [4.0, 3.5]
    assert [q["response_count"] for q in questions] == [2, 2]


def test_empty_input_yields_empty_output():
    assert aggregate_subjects([]) == []
    assert aggregate_by_faculty([]) == []


def test_total_evaluations_counts_distinct_evaluations_not_rows():
    rows = [make_row(7, question_id, 4) for question_id in range(1, 6)]
    rows.append(make_row(8, 1, 2))

    [subject] = aggregate_subjects(rows)

    assert subject["total_evaluations"] == 2


def test_overall_average_is_mean_of_all_ratings():
    rows = [
        make_row(1, 1, 5),
        make_row(2, 1, 5),
        make_row(3, 1, 5),
        make_row(1, 2, 1),
    ]

    [subject] = aggregate_subjects(rows)

    # (5 + 5 + 5 + 1) / 4, not the mean of the per-question averages (5 + 1) / 2
    assert subject["overall_average"] == 4.0
    averages = [q["average_rating"] for q in subject["detailed_results"][0]["questions"]]
    assert sum(averages) / len(averages) == 3.0


def test_averages_round_half_up():
    assert round_rating(2.675) == 2.68
    assert round_rating(4.005) == 4.01
    assert round_rating(11 / 3) == 3.67

    rows = [make_row(1, 1, 4), make_row(2, 1, 4), make_row(3, 1, 5)]
    [subject] = aggregate_subjects(rows)
    assert subject["detailed_results"][0]["questions"][0]["average_rating"] == 4.33


def test_comments_are_deduplicated_and_blank_ones_dropped():
    rows = [
        make_row(1, 1, 4, comments="Very engaging"),
        make_row(1, 2, 4, comments="Very engaging"),
        make_row(2, 1, 3, comments="   "),
        make_row(3, 1, 2, comments="\n\t"),
        make_row(4, 1, 5, comments="Needs more examples"),
    ]

    [subject] = aggregate_subjects(rows)

    assert subject["comments"] == ["Very engaging", "Needs more examples"]


def test_output_preserves_first_occurrence_order():
    rows = [
        make_row(1, 30, 4, subject_id=2, subject_code="MATH1", category_name="Conduct"),
        make_row(1, 10, 4, subject_id=2, subject_code="MATH1", category_name="Teaching"),
        make_row(2, 20, 3, subject_id=1, category_name="Teaching"),
        make_row(2, 5, 3, subject_id=1, category_name="Teaching"),
        make_row(3, 30, 5, subject_id=2, subject_code="MATH1", category_name="Conduct"),
    ]

    subjects = aggregate_subjects(rows)

    assert [s["subject_id"] for s in subjects] == [2, 1]
    math_categories = subjects[0]["detailed_results"]
    assert [c["category_name"] for c in math_categories] == ["Conduct", "Teaching"]
    assert [q["question_id"] for q in subjects[1]["detailed_results"][0]["questions"]] == [20, 5]


def test_questions_are_grouped_by_category():
    rows = [
        make_row(1, 1, 5, category_name="Teaching"),
        make_row(1, 2, 3, category_name="Conduct"),
        make_row(1, 3, 4, category_name="Teaching"),
    ]

    [subject] = aggregate_subjects(rows)

    grouped = {
        c["category_name"]: [q["question_id"] for q in c["questions"]]
        for c in subject["detailed_results"]
    }
    assert grouped == {"Teaching": [1, 3], "Conduct": [2]}


def test_faculty_groups_do_not_share_statistics(cs101_rows):
    other = [
        dict(row, faculty_id="F-002", faculty_name="Prof. Tan", rating=1, evaluation_id=row["evaluation_id"] + 10)
        for row in cs101_rows
    ]

    results = aggregate_by_faculty(cs101_rows + other)

    assert [f["faculty_id"] for f in results] == ["F-001", "F-002"]
    first, second = (f["subjects"][0] for f in results)
    assert first["overall_average"] == 3.75
    assert first["total_evaluations"] == 2
    assert second["overall_average"] == 1.0
    assert second["total_evaluations"] == 2
    assert results[1]["faculty_name"] == "Prof. Tan"


def test_single_faculty_mode_does_not_require_faculty_id(cs101_rows):
    rows = [dict(row, faculty_id=None) for row in cs101_rows]

    assert aggregate_subjects(rows)[0]["total_evaluations"] == 2
    with pytest.raises(AggregationError):
        aggregate_by_faculty(rows)


@pytest.mark.parametrize(
    "overrides",
    [
        {"rating": None},
        {"rating": "5"},
        {"rating": 4.5},
        {"rating": True},
        {"rating": 0},
        {"rating": 6},
        {"evaluation_id": None},
        {"question_id": None},
        {"category_name": None},
        {"subject_id": None},
    ],
)
def test_malformed_row_rejects_the_whole_batch(cs101_rows, overrides):
    rows = cs101_rows + [dict(make_row(3, 1, 4), **overrides)]

    with pytest.raises(AggregationError):
        aggregate_subjects(rows)


def test_row_without_rating_key_rejects_the_whole_batch(cs101_rows):
    row = make_row(3, 1, 4)
    del row["rating"]

    with pytest.raises(AggregationError, match="rating"):
        aggregate_subjects(cs101_rows + [row])


def test_rejected_batch_returns_nothing_partial(cs101_rows):
    rows = [dict(make_row(3, 1, 4), rating=7)] + cs101_rows

    with pytest.raises(AggregationError, match="Row 0"):
        aggregate_by_faculty(rows)
