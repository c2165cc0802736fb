from datetime import datetime

from ..extensions import db
from ..models import EvaluationSchedule

SCHEDULE_ID = 1


def get_schedule():
    return db.session.get(EvaluationSchedule, SCHEDULE_ID)


def schedule_state(schedule, now=None):
    if schedule is None:
        return "unset"
    now = now or datetime.now()
    if now < schedule.start_date:
        return "upcoming"
    if now > schedule.end_date:
        return "ended"
    return "open"


def is_evaluation_open(now=None):
    return schedule_state(get_schedule(), now) == "open"


def save_schedule(start_date, end_date):
    schedule = get_schedule()
    if schedule is None:
        schedule = EvaluationSchedule(id=SCHEDULE_ID, start_date=start_date, end_date=end_date)
        db.session.add(schedule)
    else:
        schedule.start_date = start_date
        schedule.end_date = end_date
    return schedule
