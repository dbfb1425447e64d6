import click
from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate, jwt, ma, mail
from .middleware.request_id import init_request_id
from .swagger_config import swagger_template
from .utils.mailer import Notifier

load_dotenv()


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    Swagger(app, template=swagger_template(app))

    # Extensions
    from . import models  # noqa: F401  (register every table with the metadata)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    mail.init_app(app)
    Notifier.from_app(app, mail)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Blueprint imports
    from .api.elections.routes import elections_bp
    from .api.results.routes import results_bp
    from .api.nominations.routes import nominations_bp
    from .api.votes.routes import votes_bp
    from .api.policy.routes import policy_bp

    # Blueprints
    app.register_blueprint(elections_bp, url_prefix="/api/elections")
    app.register_blueprint(results_bp, url_prefix="/api/elections")
    app.register_blueprint(nominations_bp, url_prefix="/api/nominations")
    app.register_blueprint(votes_bp, url_prefix="/api/votes")
    app.register_blueprint(policy_bp, url_prefix="/api/policy")

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    @app.cli.command("lifecycle-sweep")
    def lifecycle_sweep_command():
        """Run one election lifecycle sweep (reject, close, activate)."""
        from .services.lifecycle import run_lifecycle_sweep

        report = run_lifecycle_sweep()
        click.echo(report.to_dict())

    return app


def start_lifecycle_clock(app: Flask):
    """Start the background sweep when LIFECYCLE_CLOCK_ENABLED is set; returns the clock or None."""
    if not app.config.get("LIFECYCLE_CLOCK_ENABLED"):
        return None
    from .services.lifecycle import LifecycleClock

    clock = LifecycleClock(app).start()
    app.extensions["lifecycle_clock"] = clock
    return clock
