from flask import Blueprint, current_app

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return {
        "service": "contract-lifecycle",
        "blueprints": len(current_app.extensions["clm_blueprints"]),
        "contracts": len(current_app.extensions["clm_contracts"]),
    }


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for probes. No storage access, minimal overhead.
    """
    return "ok", 200
