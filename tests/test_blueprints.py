"""Tests for Blueprints module."""
from datetime import datetime, timezone

import pytest

from app.clm import create_app
from app.clm.modules.blueprints.models import Blueprint, Field, FieldType, Position
from app.clm.modules.blueprints.service import (
    BlueprintValidationError,
    build_blueprint,
    create_blueprint,
    replace_blueprint,
    validate_blueprint_payload,
)
from app.clm.persistence import blueprint_store
from app.clm.repository import Repository
from app.clm.storage import LocalStorage


def _payload(**overrides):
    payload = {
        "name": "Service Agreement",
        "fields": [
            {"type": "text", "label": "Client Name", "position": {"x": 10, "y": 25}},
            {"type": "checkbox", "label": "Terms Accepted", "position": {"x": 10, "y": 70}},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "database")

    app = create_app()
    return app.test_client()


class TestValidateBlueprintPayload:
    def test_valid_payload(self):
        assert validate_blueprint_payload(_payload()) == []

    def test_name_required(self):
        errors = validate_blueprint_payload(_payload(name="   "))
        assert "Name is required." in errors

    def test_at_least_one_field(self):
        errors = validate_blueprint_payload(_payload(fields=[]))
        assert "At least one field is required." in errors

    def test_bad_type_label_and_position(self):
        errors = validate_blueprint_payload(
            _payload(fields=[{"type": "radio", "label": "", "position": {"x": 101, "y": True}}])
        )
        assert any("invalid type" in e for e in errors)
        assert any("label is required" in e for e in errors)
        assert any("position x" in e for e in errors)
        assert any("position y" in e for e in errors)

    def test_duplicate_field_ids(self):
        fields = [
            {"id": "same", "type": "text", "label": "A", "position": {"x": 1, "y": 1}},
            {"id": "same", "type": "date", "label": "B", "position": {"x": 2, "y": 2}},
        ]
        errors = validate_blueprint_payload(_payload(fields=fields))
        assert any("duplicate id" in e for e in errors)


class TestBlueprintModel:
    def test_position_bounds(self):
        Position(x=0, y=100)
        with pytest.raises(ValueError):
            Position(x=-1, y=50)
        with pytest.raises(ValueError):
            Position(x=50, y=100.5)

    def test_duplicate_field_ids_rejected(self):
        f = Field(id="f1", type=FieldType.TEXT, label="A", position=Position(x=1, y=1))
        with pytest.raises(ValueError):
            Blueprint(id="b", name="B", fields=(f, f), created_at=datetime.now(timezone.utc))

    def test_build_assigns_ids_in_order(self):
        b = build_blueprint(_payload())
        assert [f.type for f in b.fields] == [FieldType.TEXT, FieldType.CHECKBOX]
        assert len({f.id for f in b.fields}) == 2
        assert b.created_at is not None

    def test_replacement_keeps_id_and_created_at(self):
        original = build_blueprint(_payload())
        replaced = build_blueprint(_payload(name="Renamed", fields=[_payload()["fields"][0]]), existing=original)
        assert replaced.id == original.id
        assert replaced.created_at == original.created_at
        assert replaced.name == "Renamed"
        assert len(replaced.fields) == 1


def test_blueprint_crud_via_api(client):
    r = client.post("/api/blueprints", json=_payload())
    assert r.status_code == 201
    bp_id = r.json["id"]
    assert r.json["name"] == "Service Agreement"
    assert [f["type"] for f in r.json["fields"]] == ["text", "checkbox"]
    assert all("value" not in f for f in r.json["fields"])

    r = client.get("/api/blueprints")
    assert [b["id"] for b in r.json] == [bp_id]

    r = client.put(f"/api/blueprints/{bp_id}", json=_payload(name="Master Services Agreement"))
    assert r.status_code == 200
    assert r.json["id"] == bp_id
    assert r.json["name"] == "Master Services Agreement"

    r = client.get(f"/api/blueprints/{bp_id}")
    assert r.json["name"] == "Master Services Agreement"

    r = client.delete(f"/api/blueprints/{bp_id}")
    assert r.status_code == 204
    assert client.get(f"/api/blueprints/{bp_id}").status_code == 404

    # Deleting again is a no-op
    assert client.delete(f"/api/blueprints/{bp_id}").status_code == 204


def test_create_blueprint_invalid_payload(client):
    r = client.post("/api/blueprints", json=_payload(name="", fields=[]))
    assert r.status_code == 400
    assert "Name is required." in r.json["errors"]

    r = client.post("/api/blueprints", data="not json", content_type="text/plain")
    assert r.status_code == 400


def test_replace_missing_blueprint_404(client):
    r = client.put("/api/blueprints/nope", json=_payload())
    assert r.status_code == 404


def test_blueprints_survive_restart(client):
    client.post("/api/blueprints", json=_payload(name="A"))
    client.post("/api/blueprints", json=_payload(name="B"))

    # Same DATABASE_URL, new process-level app
    app2 = create_app()
    names = [b["name"] for b in app2.test_client().get("/api/blueprints").json]
    assert names == ["A", "B"]


class TestBlueprintService:
    @pytest.fixture()
    def repo(self, tmp_path):
        r = Repository(blueprint_store(LocalStorage(root=tmp_path)), name="blueprints")
        r.load()
        return r

    def test_create_rejects_invalid_payload_with_all_errors(self, repo):
        with pytest.raises(BlueprintValidationError) as exc:
            create_blueprint(repo, _payload(name="", fields=[]))
        assert exc.value.errors == ["Name is required.", "At least one field is required."]
        assert repo.all() == []

    def test_replace_keeps_identity_and_persists(self, repo, tmp_path):
        original = create_blueprint(repo, _payload())
        replaced = replace_blueprint(repo, original, _payload(name="Renamed"))
        assert replaced.id == original.id
        assert replaced.created_at == original.created_at

        fresh = Repository(blueprint_store(LocalStorage(root=tmp_path)), name="blueprints")
        fresh.load()
        assert [b.name for b in fresh.all()] == ["Renamed"]

    def test_replace_invalid_leaves_original(self, repo):
        original = create_blueprint(repo, _payload())
        with pytest.raises(BlueprintValidationError):
            replace_blueprint(repo, original, _payload(fields=[]))
        assert repo.get(original.id) == original


def test_replace_blueprint_invalid_payload(client):
    bp_id = client.post("/api/blueprints", json=_payload()).json["id"]
    r = client.put(f"/api/blueprints/{bp_id}", json=_payload(name=" "))
    assert r.status_code == 400
    assert r.json["errors"] == ["Name is required."]
    assert client.get(f"/api/blueprints/{bp_id}").json["name"] == "Service Agreement"
