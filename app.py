from evalink import create_app
from evalink.extensions import db
from evalink.logger import get_logger
from evalink.services.db_utils import ensure_schema_updates
from evalink.services.seed import create_admin_if_missing

logger = get_logger("server")
app = create_app()


def init_db():
    with app.app_context():
        db.create_all()
        ensure_schema_updates()
        create_admin_if_missing()


if __name__ == "__main__":
    init_db()
    logger.info("--- SERVER READY ---")
    logger.info("API: http://%s:%s/api", app.config["HOST"], app.config["PORT"])
    app.run(host=app.config["HOST"], port=app.config["PORT"], debug=False)
