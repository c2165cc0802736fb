from .activity_api import bp as activity_api_bp
from .assignment_api import bp as assignment_api_bp
from .auth_api import bp as auth_api_bp
from .catalog_api import bp as catalog_api_bp
from .evaluation_api import bp as evaluation_api_bp
from .incident_api import bp as incident_api_bp
from .report_api import bp as report_api_bp
from .user_api import bp as user_api_bp


def register_blueprints(app):
    app.register_blueprint(auth_api_bp)
    app.register_blueprint(user_api_bp)
    app.register_blueprint(catalog_api_bp)
    app.register_blueprint(assignment_api_bp)
    app.register_blueprint(evaluation_api_bp)
    app.register_blueprint(report_api_bp)
    app.register_blueprint(incident_api_bp)
    app.register_blueprint(activity_api_bp)
