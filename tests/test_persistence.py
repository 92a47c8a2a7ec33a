"""Tests for storage backends, entity stores and repositories."""
import json
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine

from app.clm.db import make_sessionmaker
from app.clm.lifecycle import ContractStatus
from app.clm.models import Base
from app.clm.modules.blueprints.models import Blueprint, Field, FieldType, Position
from app.clm.modules.contracts.service import instantiate_contract
from app.clm.persistence import BLUEPRINTS_KEY, CONTRACTS_KEY, blueprint_store, contract_store
from app.clm.repository import Repository
from app.clm.storage import DatabaseStorage, LocalStorage, StorageError, storage_from_config


def _blueprint(bp_id="bp-1", name="Service Agreement"):
    return Blueprint(
        id=bp_id,
        name=name,
        fields=(
            Field(id="f-check", type=FieldType.CHECKBOX, label="Accept", position=Position(x=10, y=20)),
            Field(id="f-text", type=FieldType.TEXT, label="Client", position=Position(x=0, y=100)),
            Field(id="f-date", type=FieldType.DATE, label="Effective", position=Position(x=50.5, y=30)),
            Field(id="f-sig", type=FieldType.SIGNATURE, label="Signature", position=Position(x=10, y=90)),
        ),
        created_at=datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc),
    )


@pytest.fixture(params=["local", "database"])
def storage(request, tmp_path):
    if request.param == "local":
        return LocalStorage(root=tmp_path / "storage")
    engine = create_engine(f"sqlite:///{tmp_path/'store.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    return DatabaseStorage(sm=make_sessionmaker(engine))


def test_missing_collection_is_empty(storage):
    assert blueprint_store(storage).get_all() == []
    assert contract_store(storage).get_all() == []


@pytest.mark.parametrize("raw", ["{not json", "{\"id\": 1}", "42", ""])
def test_corrupt_collection_is_empty(storage, raw):
    storage.write_text(CONTRACTS_KEY, raw)
    assert contract_store(storage).get_all() == []


def test_malformed_records_are_skipped(storage):
    good = {
        "id": "bp-ok",
        "name": "Good",
        "fields": [],
        "createdAt": "2026-01-01T00:00:00.000Z",
    }
    bad_type = {"id": "bp-bad", "name": "Bad", "fields": [{"id": "x", "type": "radio", "label": "X", "position": {"x": 1, "y": 1}}], "createdAt": "2026-01-01T00:00:00Z"}
    no_id = {"name": "Missing id", "fields": [], "createdAt": "2026-01-01T00:00:00Z"}
    field_not_object = {"id": "bp-f", "name": "F", "fields": ["junk"], "createdAt": "2026-01-01T00:00:00Z"}
    position_as_list = {
        "id": "bp-p",
        "name": "P",
        "fields": [{"id": "x", "type": "text", "label": "X", "position": [1, 2]}],
        "createdAt": "2026-01-01T00:00:00Z",
    }
    epoch_millis = {"id": "bp-t", "name": "T", "fields": [], "createdAt": 1700000000000}
    storage.write_text(
        BLUEPRINTS_KEY,
        json.dumps([good, bad_type, no_id, "junk", field_not_object, position_as_list, epoch_millis]),
    )

    loaded = blueprint_store(storage).get_all()
    assert [b.id for b in loaded] == ["bp-ok"]


def test_save_upserts_by_id_and_keeps_order(storage):
    store = blueprint_store(storage)
    store.save(_blueprint("a", "First"))
    store.save(_blueprint("b", "Second"))
    store.save(_blueprint("a", "First (renamed)"))

    loaded = store.get_all()
    assert [b.id for b in loaded] == ["a", "b"]
    assert loaded[0].name == "First (renamed)"


def test_delete_missing_is_noop(storage):
    store = blueprint_store(storage)
    store.save(_blueprint("a"))
    store.delete("does-not-exist")
    store.delete("a")
    store.delete("a")
    assert store.get_all() == []


def test_contract_round_trip_is_lossless(storage):
    store = contract_store(storage)
    c = instantiate_contract(_blueprint(), "Acme - Q4")
    store.save(c)

    [loaded] = store.get_all()
    assert loaded == c
    assert loaded.status is ContractStatus.CREATED

    raw = json.loads(storage.read_text(CONTRACTS_KEY))
    fields = {f["id"]: f for f in raw[0]["fields"]}
    assert fields["f-check"]["value"] is False
    assert "value" not in fields["f-text"]
    assert "value" not in fields["f-sig"]
    assert raw[0]["blueprintId"] == "bp-1"
    assert fields["f-date"]["position"] == {"x": 50.5, "y": 30}


def test_reads_browser_style_documents(storage):
    doc = [
        {
            "id": "1700000000000",
            "name": "Legacy",
            "blueprintId": "1699999999999",
            "fields": [
                {"id": "1", "type": "checkbox", "label": "Agree", "position": {"x": 10, "y": 25}, "value": True},
                {"id": "2", "type": "text", "label": "Name", "position": {"x": 10, "y": 40}, "value": "Jane"},
                {"id": "3", "type": "date", "label": "Date", "position": {"x": 10, "y": 55}},
            ],
            "status": "SENT",
            "createdAt": "2023-11-14T22:13:20.000Z",
        }
    ]
    storage.write_text(CONTRACTS_KEY, json.dumps(doc))

    [c] = contract_store(storage).get_all()
    assert c.status is ContractStatus.SENT
    assert [cf.value.value for cf in c.fields] == [True, "Jane", None]
    assert c.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_malformed_contract_shapes_do_not_break_load(storage):
    good = {
        "id": "c-ok",
        "name": "Good",
        "blueprintId": "b1",
        "fields": [],
        "status": "CREATED",
        "createdAt": "2026-01-01T00:00:00Z",
    }
    bad_field = dict(good, id="c-f", fields=[42])
    bad_time = dict(good, id="c-t", createdAt=1700000000000)
    storage.write_text(CONTRACTS_KEY, json.dumps([bad_field, good, bad_time]))

    repo = Repository(contract_store(storage), name="contracts")
    repo.load()
    assert [c.id for c in repo.all()] == ["c-ok"]


def test_checkbox_with_string_value_is_rejected(storage):
    doc = [
        {
            "id": "c1",
            "name": "Bad checkbox",
            "blueprintId": "b1",
            "fields": [{"id": "1", "type": "checkbox", "label": "Agree", "position": {"x": 1, "y": 1}, "value": "yes"}],
            "status": "CREATED",
            "createdAt": "2026-01-01T00:00:00Z",
        }
    ]
    storage.write_text(CONTRACTS_KEY, json.dumps(doc))
    assert contract_store(storage).get_all() == []


def test_unreadable_database_degrades_to_empty(tmp_path):
    # No tables created: reads fail at the SQL layer.
    engine = create_engine(f"sqlite:///{tmp_path/'empty.db'}", future=True)
    storage = DatabaseStorage(sm=make_sessionmaker(engine))
    assert blueprint_store(storage).get_all() == []
    with pytest.raises(StorageError):
        storage.write_text(BLUEPRINTS_KEY, "[]")


def test_storage_from_config_rejects_unknown_backend():
    with pytest.raises(StorageError):
        storage_from_config({"STORAGE_BACKEND": "s3"})


def test_storage_from_config_local(tmp_path):
    s = storage_from_config({"STORAGE_BACKEND": "local", "STORAGE_DIR": str(tmp_path)})
    assert isinstance(s, LocalStorage)
    assert s.exists(BLUEPRINTS_KEY) is False


class TestRepository:
    def test_load_populates_in_store_order(self, storage):
        store = blueprint_store(storage)
        store.save(_blueprint("a", "A"))
        store.save(_blueprint("b", "B"))

        repo = Repository(store, name="blueprints")
        repo.load()
        assert [b.id for b in repo.all()] == ["a", "b"]
        assert repo.get("b").name == "B"
        assert repo.get("zzz") is None

    def test_load_twice_raises(self, storage):
        repo = Repository(blueprint_store(storage))
        repo.load()
        with pytest.raises(RuntimeError):
            repo.load()

    def test_use_before_load_raises(self, storage):
        repo = Repository(blueprint_store(storage))
        with pytest.raises(RuntimeError):
            repo.all()

    def test_writes_are_visible_to_a_fresh_repository(self, storage):
        repo = Repository(blueprint_store(storage))
        repo.load()
        repo.save(_blueprint("a", "A"))
        repo.save(_blueprint("b", "B"))
        repo.save(_blueprint("a", "A2"))
        repo.delete("b")
        repo.delete("missing")

        fresh = Repository(blueprint_store(storage))
        fresh.load()
        assert [(b.id, b.name) for b in fresh.all()] == [("a", "A2")]
        assert [(b.id, b.name) for b in repo.all()] == [("a", "A2")]

    def test_failed_write_leaves_memory_untouched(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path/'r.db'}", future=True)
        Base.metadata.create_all(bind=engine)
        storage = DatabaseStorage(sm=make_sessionmaker(engine))
        repo = Repository(blueprint_store(storage))
        repo.load()
        repo.save(_blueprint("a", "A"))

        Base.metadata.drop_all(bind=engine)
        with pytest.raises(StorageError):
            repo.save(_blueprint("a", "A renamed"))
        assert repo.get("a").name == "A"
