from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint as FlaskBlueprint
from flask import abort, current_app, jsonify, request

from app.clm.lifecycle import can_edit, next_statuses, parse_status
from app.clm.modules.blueprints.models import Blueprint
from app.clm.modules.blueprints.service import blueprint_names
from app.clm.modules.contracts.models import Contract, contract_to_dict
from app.clm.modules.contracts.service import (
    UNKNOWN_BLUEPRINT,
    NotEditableError,
    available_actions,
    blueprint_name_for,
    change_status,
    create_contract,
    filter_contracts,
    lifecycle_timeline,
    parse_filter,
    status_message,
    summarize_contracts,
    update_contract,
)
from app.clm.repository import Repository

bp = FlaskBlueprint("contracts", __name__)


def _contracts() -> Repository[Contract]:
    return current_app.extensions["clm_contracts"]


def _blueprints() -> Repository[Blueprint]:
    return current_app.extensions["clm_blueprints"]


def _get_contract_or_404(contract_id: str) -> Contract:
    c = _contracts().get(contract_id)
    if not c:
        abort(404)
    return c


def _json_payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Request body must be a JSON object.")
    return payload


def _contract_detail(c: Contract) -> dict:
    data = contract_to_dict(c)
    data.update(
        {
            "blueprintName": blueprint_name_for(c, _blueprints()),
            "editable": can_edit(c.status),
            "nextStatuses": [s.value for s in next_statuses(c.status)],
            "actions": available_actions(c.status),
            "timeline": lifecycle_timeline(c.status),
            "statusMessage": status_message(c.status),
        }
    )
    return data


@bp.get("")
def list_contracts():
    try:
        contract_filter = parse_filter(request.args.get("filter"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    names = blueprint_names(_blueprints())
    rows = filter_contracts(
        _contracts().all(),
        contract_filter,
        query=request.args.get("q"),
        blueprint_names=names,
    )
    out = []
    for c in rows:
        data = contract_to_dict(c)
        data["blueprintName"] = names.get(c.blueprint_id, UNKNOWN_BLUEPRINT)
        out.append(data)
    return jsonify(out)


@bp.get("/summary")
def contracts_summary():
    return jsonify(asdict(summarize_contracts(_contracts().all())))


@bp.post("")
def create_contract_post():
    payload = _json_payload()
    raw_id = payload.get("blueprintId")
    blueprint_id = raw_id.strip() if isinstance(raw_id, str) else ""
    if not blueprint_id:
        return jsonify({"error": "blueprintId is required"}), 400

    blueprint = _blueprints().get(blueprint_id)
    if not blueprint:
        return jsonify({"error": "Blueprint not found"}), 404

    name = payload.get("name")
    c = create_contract(_contracts(), blueprint, name if isinstance(name, str) else None)
    return jsonify(_contract_detail(c)), 201


@bp.get("/<contract_id>")
def contract_detail(contract_id: str):
    return jsonify(_contract_detail(_get_contract_or_404(contract_id)))


@bp.patch("/<contract_id>")
def update_contract_patch(contract_id: str):
    c = _get_contract_or_404(contract_id)
    payload = _json_payload()

    name = payload.get("name")
    if name is not None and not isinstance(name, str):
        return jsonify({"error": "name must be a string"}), 400
    values = payload.get("values")
    if values is not None and not isinstance(values, dict):
        return jsonify({"error": "values must be an object keyed by field id"}), 400

    try:
        updated = update_contract(_contracts(), c, name=name, values=values)
    except NotEditableError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(_contract_detail(updated))


@bp.post("/<contract_id>/status")
def change_status_post(contract_id: str):
    _get_contract_or_404(contract_id)
    payload = _json_payload()
    try:
        target = parse_status(payload.get("status"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    outcome = change_status(_contracts(), contract_id, target)
    if not outcome.accepted:
        current_app.logger.warning(
            "Rejected status change contract=%s from=%s to=%s",
            contract_id,
            outcome.previous.value if outcome.previous else None,
            target.value,
        )
        return jsonify({"error": outcome.message, "contract": _contract_detail(outcome.contract)}), 409
    return jsonify(_contract_detail(outcome.contract))


@bp.delete("/<contract_id>")
def delete_contract(contract_id: str):
    _contracts().delete(contract_id)
    return "", 204
