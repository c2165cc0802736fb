from typing import Any

from .extensions import db


class BaseModel(db.Model):
    __abstract__ = True

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)


class User(BaseModel):
    __tablename__ = "users"
    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    section_id = db.Column(db.Integer, db.ForeignKey("sections.id"), nullable=True)
    year_level = db.Column(db.Integer, nullable=True)
    profile_image_url = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=db.func.now())
    last_login_at = db.Column(db.DateTime, nullable=True)


class Department(BaseModel):
    __tablename__ = "departments"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)


class Section(BaseModel):
    __tablename__ = "sections"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    year_level = db.Column(db.Integer, nullable=True)


class Subject(BaseModel):
    __tablename__ = "subjects"
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(30), unique=True, nullable=False)
    name = db.Column(db.String(160), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    year_level = db.Column(db.Integer, nullable=True)


class FacultySubject(BaseModel):
    __tablename__ = "faculty_subjects"
    __table_args__ = (db.UniqueConstraint("subject_id", "section_id"),)
    id = db.Column(db.Integer, primary_key=True)
    faculty_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id"), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey("sections.id"), nullable=False)


class StudentSubject(BaseModel):
    __tablename__ = "student_subjects"
    __table_args__ = (db.UniqueConstraint("student_id", "subject_id"),)
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id"), nullable=False)
    faculty_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey("sections.id"), nullable=True)


class EvaluationCategory(BaseModel):
    __tablename__ = "evaluation_categories"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    display_order = db.Column(db.Integer, default=0)


class EvaluationQuestion(BaseModel):
    __tablename__ = "evaluation_questions"
    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(
        db.Integer, db.ForeignKey("evaluation_categories.id"), nullable=False
    )
    text = db.Column(db.Text, nullable=False)
    display_order = db.Column(db.Integer, default=0)


class Evaluation(BaseModel):
    __tablename__ = "evaluations"
    __table_args__ = (db.UniqueConstraint("student_id", "subject_id"),)
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    faculty_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id"), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey("sections.id"), nullable=True)
    comments = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime, default=db.func.now())


class EvaluationAnswer(BaseModel):
    __tablename__ = "evaluation_answers"
    id = db.Column(db.Integer, primary_key=True)
    evaluation_id = db.Column(
        db.Integer, db.ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False
    )
    question_id = db.Column(
        db.Integer, db.ForeignKey("evaluation_questions.id"), nullable=False
    )
    rating = db.Column(db.Integer, nullable=False)


class EvaluationSchedule(BaseModel):
    __tablename__ = "evaluation_schedule"
    id = db.Column(db.Integer, primary_key=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)


class Incident(BaseModel):
    __tablename__ = "incidents"
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(50), default="Pending")
    submitted_at = db.Column(db.DateTime, default=db.func.now())


class ActivityLog(BaseModel):
    __tablename__ = "activity_logs"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    activity_type = db.Column(db.String(80), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    timestamp = db.Column(db.DateTime, default=db.func.now())
