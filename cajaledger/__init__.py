# cajaledger/__init__.py
from flask import Flask

from .config import Config
from .engine import CajaEngine
from .gateway import PersistenceGateway


EXTENSION_KEY = "cajaledger"


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # One gateway per app; the engine receives it explicitly
    gateway = PersistenceGateway(
        app.config["DATABASE_URL"],
        echo=app.config["SQL_ECHO"],
    )
    engine = CajaEngine(
        gateway,
        low_stock_threshold=app.config["LOW_STOCK_THRESHOLD"],
        history_limit=app.config["MOVEMENT_HISTORY_LIMIT"],
        analytics_window_days=app.config["ANALYTICS_WINDOW_DAYS"],
    )
    app.extensions[EXTENSION_KEY] = engine

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def get_engine(app: Flask) -> CajaEngine:
    return app.extensions[EXTENSION_KEY]


__all__ = ["create_app", "get_engine", "CajaEngine", "PersistenceGateway", "Config"]
