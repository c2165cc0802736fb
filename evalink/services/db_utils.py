from datetime import datetime

from sqlalchemy import inspect, text

from ..extensions import db
from ..logger import get_logger

logger = get_logger("db")


def ensure_schema_updates():
    """Add columns introduced after the first release to existing databases."""
    inspector = inspect(db.engine)
    table_names = set(inspector.get_table_names())
    schema_updates = {
        "users": [
            ("profile_image_url", "VARCHAR(255)"),
            ("is_active", "BOOLEAN"),
            ("created_at", "DATETIME"),
            ("last_login_at", "DATETIME"),
        ],
        "evaluation_categories": [
            ("display_order", "INTEGER"),
        ],
        "evaluation_questions": [
            ("display_order", "INTEGER"),
        ],
    }
    with db.engine.begin() as connection:
        for table, columns in schema_updates.items():
            if table not in table_names:
                continue
            existing_columns = {col["name"] for col in inspector.get_columns(table)}
            for column_name, column_type in columns:
                if column_name in existing_columns:
                    continue
                try:
                    connection.execute(
                        text(f"ALTER TABLE {table} ADD COLUMN {column_name} {column_type}")
                    )
                    logger.info("Added column '%s' to '%s'.", column_name, table)
                except Exception as exc:
                    logger.warning(
                        "Could not add column '%s' to '%s': %s", column_name, table, exc
                    )


def parse_datetime(value):
    """Parse an ISO date or datetime string into naive local time; None when unparseable."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.replace(tzinfo=None)


def parse_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
