from flask import Flask
from flask_cors import CORS

from config import config
from thisorthat.extensions import db


def create_app(config_name="default", services=None):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    # Extensions
    db.init_app(app)
    CORS(app)

    # Errors and auth
    from thisorthat.errors import register_error_handlers
    from thisorthat.security import require_api_key

    register_error_handlers(app)
    app.before_request(require_api_key)

    # Blueprints
    from thisorthat.routes import auth_routes, metadata_routes, pairs_routes, sources_routes, stream_routes, votes_routes

    app.register_blueprint(auth_routes.bp)
    app.register_blueprint(pairs_routes.bp)
    app.register_blueprint(votes_routes.bp)
    app.register_blueprint(metadata_routes.bp)
    app.register_blueprint(sources_routes.bp)
    app.register_blueprint(stream_routes.bp)

    # Process-wide state lives on the app, passed into the pipeline explicitly
    from thisorthat.context import build_services

    app.services = services or build_services(app.config)

    with app.app_context():
        from thisorthat import models  # noqa: F401

        db.create_all()

    if app.config.get("SPOTIFY_REFRESH_ON_START") and app.config.get("SPOTIFY_CLIENT_ID"):
        from thisorthat.sources.spotify import refresh_spotify_token

        if not refresh_spotify_token(app.services):
            app.logger.warning("[spotify] no token at startup; album images unavailable until refreshed")

    return app
