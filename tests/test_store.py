import json
import threading

import pytest

from rdb.core.errors import AuthorizationError, BackendError, StaleVersionError
from rdb.domain.arbiter import VersionArbiter
from rdb.domain.models import Identity, ModInfo, RegistryConfig
from rdb.domain.search import tokenize_identity
from rdb.storage.db_manager import SortOrder, UpsertOutcome
from rdb.storage.json_db_manager import JsonRegistryStore

ARBITER = VersionArbiter()


def _info(version: str, description: str = "") -> ModInfo:
    return ModInfo(binaries=["https://cdn.discordapp.com/attachments/1/2/a.dll"], version=version, description=description)


def _put(store, ident: str, version: str, secret: str = "S1", now: int = 100):
    identity = Identity.parse(ident)
    return store.upsert(identity, _info(version), secret, tokenize_identity(ident), now, ARBITER)


def _set_downloads(data_dir, counts):
    # Stands in for the external download counter editing mods.json.
    path = data_dir / "mods.json"
    raw = json.loads(path.read_text())
    for doc in raw["mods"]:
        if doc["_id"] in counts:
            doc["downloads"] = counts[doc["_id"]]
    path.write_text(json.dumps(raw))


def test_insert_sets_published_and_updated(store):
    assert _put(store, "alice/foo", "1.0.0", now=100) is UpsertOutcome.CREATED

    entry = store.get_entry(Identity.parse("alice/foo"))
    assert entry.published == 100
    assert entry.updated == 100
    assert entry.downloads is None
    assert entry.secret == "S1"
    assert "downloads" not in entry.to_document()
    assert entry.to_document()["_id"] == "alice/foo"


def test_update_replaces_only_mutable_fields(store, data_dir):
    _put(store, "alice/foo", "1.0.0", now=100)

    _set_downloads(data_dir, {"alice/foo": 7})

    assert _put(store, "alice/foo", "1.1.0", now=200) is UpsertOutcome.UPDATED

    entry = store.get_entry(Identity.parse("alice/foo"))
    assert entry.published == 100
    assert entry.updated == 200
    assert entry.downloads == 7
    assert entry.secret == "S1"
    assert entry.info.version == "1.1.0"


def test_writes_keep_download_counts_from_disk(store, data_dir):
    _put(store, "alice/foo", "1.0.0", now=100)
    _set_downloads(data_dir, {"alice/foo": 7})

    # A write for an unrelated mod must not revert the counter.
    _put(store, "bob/bar", "0.1.0", now=200)
    assert store.get_entry(Identity.parse("alice/foo")).downloads == 7

    reloaded = JsonRegistryStore(data_dir)
    reloaded.initialize()
    assert reloaded.get_entry(Identity.parse("alice/foo")).downloads == 7
    assert reloaded.get_entry(Identity.parse("bob/bar")).downloads is None


def test_rejections_do_not_mutate(store, data_dir):
    _put(store, "alice/foo", "1.2.0", now=100)
    before = (data_dir / "mods.json").read_text()

    with pytest.raises(AuthorizationError):
        _put(store, "alice/foo", "2.0.0", secret="S2", now=200)
    with pytest.raises(StaleVersionError):
        _put(store, "alice/foo", "1.0.0", now=300)

    assert (data_dir / "mods.json").read_text() == before
    entry = store.get_entry(Identity.parse("alice/foo"))
    assert entry.updated == 100
    assert entry.info.version == "1.2.0"


def test_entries_survive_reload(store, data_dir):
    _put(store, "alice/foo", "1.0.0")
    _put(store, "bob/bar", "0.1.0")

    reloaded = JsonRegistryStore(data_dir)
    reloaded.initialize()
    assert reloaded.count_entries() == 2
    assert reloaded.get_entry(Identity.parse("bob/bar")).info.version == "0.1.0"


def test_corrupt_file_is_a_backend_error(data_dir):
    (data_dir / "mods.json").write_text("{not json")
    s = JsonRegistryStore(data_dir)
    with pytest.raises(BackendError):
        s.initialize()


def test_config_is_written_back_with_defaults(data_dir):
    (data_dir / "registry.json").write_text(json.dumps({"page_size": 3}))
    s = JsonRegistryStore(data_dir)
    s.initialize()

    config = s.get_registry_config()
    assert config.page_size == 3
    assert config.github_release_owners == ["Dual-Iron"]
    persisted = json.loads((data_dir / "registry.json").read_text())
    assert persisted["lock_timeout_seconds"] == 5.0


def test_unparseable_config_falls_back_to_defaults(data_dir):
    (data_dir / "registry.json").write_text("[]")
    s = JsonRegistryStore(data_dir)
    s.initialize()
    assert s.get_registry_config() == RegistryConfig()


def test_write_failure_is_a_backend_error_and_leaves_state(store, monkeypatch):
    _put(store, "alice/foo", "1.0.0", now=100)

    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("rdb.storage.json_db_manager.os.replace", fail)
    with pytest.raises(BackendError):
        _put(store, "alice/foo", "2.0.0", now=200)
    with pytest.raises(BackendError):
        _put(store, "carol/new", "1.0.0", now=200)

    assert store.get_entry(Identity.parse("alice/foo")).info.version == "1.0.0"
    assert store.get_entry(Identity.parse("carol/new")) is None


def test_lock_timeout_is_a_backend_error(store):
    store.save_registry_config(RegistryConfig(lock_timeout_seconds=0.05))
    store._lock.acquire()
    try:
        with pytest.raises(BackendError):
            _put(store, "alice/foo", "1.0.0")
    finally:
        store._lock.release()
    assert store.count_entries() == 0


def test_concurrent_inserts_create_exactly_one_entry(store):
    results = []
    errors = []
    barrier = threading.Barrier(8)

    def worker(i):
        barrier.wait()
        try:
            results.append(_put(store, "race/mod", "1.0.0", secret=f"S{i}"))
        except AuthorizationError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == [UpsertOutcome.CREATED]
    assert len(errors) == 7
    assert store.count_entries() == 1


class TestListing:
    @pytest.fixture
    def populated(self, data_dir):
        (data_dir / "registry.json").write_text(json.dumps({"page_size": 2}))
        s = JsonRegistryStore(data_dir)
        s.initialize()
        _put(s, "Dual-Iron/centipede-shields", "1.0.0", now=300)
        _put(s, "alice/lizard-skins", "1.0.0", now=100)
        _put(s, "bob/slugcat_hats", "1.0.0", now=200)

        _set_downloads(data_dir, {"alice/lizard-skins": 50, "bob/slugcat_hats": 5})
        s.initialize()
        return s

    def _ids(self, entries):
        return [e.id for e in entries]

    def test_new_is_default_and_paged(self, populated):
        assert self._ids(populated.list_entries()) == ["Dual-Iron/centipede-shields", "bob/slugcat_hats"]
        assert self._ids(populated.list_entries(page=1)) == ["alice/lizard-skins"]
        assert populated.list_entries(page=2) == []

    def test_old(self, populated):
        assert self._ids(populated.list_entries(sort=SortOrder.OLD)) == ["alice/lizard-skins", "bob/slugcat_hats"]

    def test_downloads(self, populated):
        assert self._ids(populated.list_entries(sort=SortOrder.MOST_DOWNLOADS)) == [
            "alice/lizard-skins",
            "bob/slugcat_hats",
        ]
        # Absent downloads count as zero.
        assert self._ids(populated.list_entries(sort=SortOrder.LEAST_DOWNLOADS)) == [
            "Dual-Iron/centipede-shields",
            "bob/slugcat_hats",
        ]

    def test_search(self, populated):
        assert self._ids(populated.list_entries(search="centi")) == ["Dual-Iron/centipede-shields"]
        assert self._ids(populated.list_entries(search="HATS lizard", sort=SortOrder.OLD)) == [
            "alice/lizard-skins",
            "bob/slugcat_hats",
        ]
        assert populated.list_entries(search="nothing") == []

    def test_count(self, populated):
        assert populated.count_entries() == 3
