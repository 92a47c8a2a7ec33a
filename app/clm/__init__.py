import logging

from flask import Flask, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.clm.config import load_config
from app.clm.db import init_db
from app.clm.models import Base
from app.clm.persistence import blueprint_store, contract_store
from app.clm.repository import Repository
from app.clm.routes import bp as routes_bp
from app.clm.storage import StorageError, storage_from_config
from app.clm.modules.blueprints.admin import bp as blueprints_bp
from app.clm.modules.contracts.admin import bp as contracts_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    backend = (app.config.get("STORAGE_BACKEND") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if backend == "database" and str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")

    init_db(app)

    if backend == "database" and env not in ("prod", "production"):
        # Dev/test convenience; production schema is managed by `alembic upgrade head`.
        Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    storage = storage_from_config(app.config, app.extensions["sqlalchemy_sessionmaker"])
    blueprints: Repository = Repository(blueprint_store(storage), name="blueprints")
    contracts: Repository = Repository(contract_store(storage), name="contracts")
    blueprints.load()
    contracts.load()
    app.extensions["clm_blueprints"] = blueprints
    app.extensions["clm_contracts"] = contracts
    app.logger.info(
        "Storage backend=%s blueprints=%s contracts=%s", backend or "database", len(blueprints), len(contracts)
    )

    app.register_blueprint(routes_bp)
    app.register_blueprint(blueprints_bp, url_prefix="/api/blueprints")
    app.register_blueprint(contracts_bp, url_prefix="/api/contracts")

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(StorageError)
    def _err_storage(e: StorageError):  # type: ignore[no-redef]
        app.logger.exception("Storage write failed: %s", e)
        return jsonify({"error": "Storage unavailable"}), 500

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500")
        return jsonify({"error": "Internal server error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
