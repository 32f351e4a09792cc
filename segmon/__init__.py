from flask import Flask
from .config import Config
from .extensions import cors, db
from .storage.document_store import Segmon
from .storage.errors import IdAllocationError, IdentifierExhaustedError, SegmonError

__all__ = [
    "Config",
    "Segmon",
    "SegmonError",
    "IdAllocationError",
    "IdentifierExhaustedError",
    "create_app",
]


def create_app(config_class: type[Config] = Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Extensions
    cors.init_app(app)
    db.init_app(app)

    # Blueprints
    from .routes.collections_api import bp as collections_api

    app.register_blueprint(collections_api, url_prefix="/api")

    return app
