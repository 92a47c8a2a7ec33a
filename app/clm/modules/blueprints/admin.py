from __future__ import annotations

from flask import Blueprint as FlaskBlueprint
from flask import abort, current_app, jsonify, request

from app.clm.modules.blueprints.models import Blueprint, blueprint_to_dict
from app.clm.modules.blueprints.service import (
    BlueprintValidationError,
    create_blueprint,
    replace_blueprint,
)
from app.clm.repository import Repository

bp = FlaskBlueprint("blueprints", __name__)


def _repo() -> Repository[Blueprint]:
    return current_app.extensions["clm_blueprints"]


def _get_blueprint_or_404(blueprint_id: str) -> Blueprint:
    b = _repo().get(blueprint_id)
    if not b:
        abort(404)
    return b


def _json_payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Request body must be a JSON object.")
    return payload


@bp.get("")
def list_blueprints():
    return jsonify([blueprint_to_dict(b) for b in _repo().all()])


@bp.post("")
def create_blueprint_post():
    try:
        b = create_blueprint(_repo(), _json_payload())
    except BlueprintValidationError as e:
        return jsonify({"error": "Invalid blueprint", "errors": e.errors}), 400
    current_app.logger.info("Blueprint created id=%s fields=%s", b.id, len(b.fields))
    return jsonify(blueprint_to_dict(b)), 201


@bp.get("/<blueprint_id>")
def blueprint_detail(blueprint_id: str):
    return jsonify(blueprint_to_dict(_get_blueprint_or_404(blueprint_id)))


@bp.put("/<blueprint_id>")
def replace_blueprint_put(blueprint_id: str):
    existing = _get_blueprint_or_404(blueprint_id)
    try:
        b = replace_blueprint(_repo(), existing, _json_payload())
    except BlueprintValidationError as e:
        return jsonify({"error": "Invalid blueprint", "errors": e.errors}), 400
    current_app.logger.info("Blueprint replaced id=%s", b.id)
    return jsonify(blueprint_to_dict(b))


@bp.delete("/<blueprint_id>")
def delete_blueprint(blueprint_id: str):
    # Contracts referencing this blueprint are left alone; they resolve its name as "Unknown".
    _repo().delete(blueprint_id)
    return "", 204
