"""Fold flat evaluation-answer rows into per-subject rating summaries.

Rows are mappings with the columns produced by the report queries:
``faculty_id``, ``faculty_name``, ``subject_id``, ``subject_name``,
``subject_code``, ``category_name``, ``question_id``, ``question_text``,
``rating``, ``evaluation_id`` and ``comments``.

Output order follows the first occurrence of each faculty, subject, category
and question in the input. Nothing here sorts, so callers must hand in rows
already ordered the way the report should read.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

MIN_RATING = 1
MAX_RATING = 5

SUBJECT_FIELDS = ("subject_id", "category_name", "question_id", "rating", "evaluation_id")
FACULTY_FIELDS = ("faculty_id",)


class AggregationError(ValueError):
    """Raised when an input row breaks the row contract; the batch is rejected."""


@dataclass
class QuestionTally:
    question_id: int
    question_text: str
    category_name: str
    total: int = 0
    count: int = 0


@dataclass
class SubjectTally:
    subject_id: int
    subject_name: str
    subject_code: str
    questions: "OrderedDict[int, QuestionTally]" = field(default_factory=OrderedDict)
    evaluation_ids: set = field(default_factory=set)
    comments: "OrderedDict[str, None]" = field(default_factory=OrderedDict)

    def add(self, row, rating):
        question_id = row["question_id"]
        tally = self.questions.get(question_id)
        if tally is None:
            tally = QuestionTally(
                question_id=question_id,
                question_text=row.get("question_text"),
                category_name=row["category_name"],
            )
            self.questions[question_id] = tally
        tally.total += rating
        tally.count += 1
        self.evaluation_ids.add(row["evaluation_id"])

        comment = row.get("comments")
        if isinstance(comment, str) and comment.strip():
            self.comments.setdefault(comment, None)

    def summary(self):
        total = sum(q.total for q in self.questions.values())
        count = sum(q.count for q in self.questions.values())

        categories = OrderedDict()
        for tally in self.questions.values():
            category = categories.setdefault(
                tally.category_name,
                {"category_name": tally.category_name, "questions": []},
            )
            category["questions"].append(
                {
                    "question_id": tally.question_id,
                    "question_text": tally.question_text,
                    "average_rating": round_rating(tally.total / tally.count),
                    "response_count": tally.count,
                }
            )

        return {
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "subject_code": self.subject_code,
            "overall_average": round_rating(total / count) if count else 0,
            "total_evaluations": len(self.evaluation_ids),
            "comments": list(self.comments),
            "detailed_results": list(categories.values()),
        }


def round_rating(value):
    """Round half-up to two decimals, the way averages are shown to users."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def validate_row(row, index, group_by_faculty=False):
    required = SUBJECT_FIELDS + (FACULTY_FIELDS if group_by_faculty else ())
    for name in required:
        if row.get(name) is None:
            raise AggregationError(f"Row {index} is missing required field '{name}'.")

    rating = row["rating"]
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise AggregationError(f"Row {index} has a non-integer rating: {rating!r}.")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise AggregationError(
            f"Row {index} has rating {rating} outside {MIN_RATING}-{MAX_RATING}."
        )
    return rating


def _fold(rows, group_by_faculty):
    groups = OrderedDict()
    for index, row in enumerate(rows):
        rating = validate_row(row, index, group_by_faculty)

        group_key = row["faculty_id"] if group_by_faculty else None
        group = groups.get(group_key)
        if group is None:
            group = {
                "faculty_id": row.get("faculty_id"),
                "faculty_name": row.get("faculty_name"),
                "subjects": OrderedDict(),
            }
            groups[group_key] = group

        subject = group["subjects"].get(row["subject_id"])
        if subject is None:
            subject = SubjectTally(
                subject_id=row["subject_id"],
                subject_name=row.get("subject_name"),
                subject_code=row.get("subject_code"),
            )
            group["subjects"][row["subject_id"]] = subject

        subject.add(row, rating)
    return groups


def aggregate_evaluations(rows, group_by_faculty=False):
    """Summarize rating rows, optionally nested under their faculty member.

    Raises :class:`AggregationError` for any malformed row, before any
    statistics are returned.
    """
    groups = _fold(rows, group_by_faculty)
    if not group_by_faculty:
        group = groups.get(None)
        if group is None:
            return []
        return [subject.summary() for subject in group["subjects"].values()]

    return [
        {
            "faculty_id": group["faculty_id"],
            "faculty_name": group["faculty_name"],
            "subjects": [subject.summary() for subject in group["subjects"].values()],
        }
        for group in groups.values()
    ]


def aggregate_subjects(rows):
    """Single-faculty view: a list of subject summaries."""
    return aggregate_evaluations(rows, group_by_faculty=False)


def aggregate_by_faculty(rows):
    """Admin-wide view: a list of faculty entries, each with subject summaries."""
    return aggregate_evaluations(rows, group_by_faculty=True)
