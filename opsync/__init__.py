import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from .extensions import db, rq

migrate = Migrate()


def create_app(config_object='config.Config'):
    """App factory for the webhook service, RQ workers and scripts."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)
    rq.init_app(app)

    # register models on the metadata for migrations and create_all
    from . import models  # noqa: F401

    from .blueprints.webhooks import bp as webhooks_bp
    app.register_blueprint(webhooks_bp, url_prefix="/webhooks")

    @app.get('/ping')
    def ping():
        return jsonify({"status": "ok"})

    return app
