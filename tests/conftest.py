import itertools
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rdb.core import dependencies
from rdb.domain.binaries import BinaryURLResolver
from rdb.domain.models import Submission
from rdb.main import app
from rdb.services.submission import SubmissionPipeline
from rdb.storage.json_db_manager import JsonRegistryStore

GITHUB_BINARY = "https://github.com/Dual-Iron/centipede-shields/releases/download/0.3.0/CentiShields.dll"
ICON = "https://raw.githubusercontent.com/Dual-Iron/centipede-shields/master/wallpounce_icon.png"


def make_submission(**overrides) -> Submission:
    data = {
        "name": "centipede-shields",
        "owner": "Dual-Iron",
        "secret": "not telling you this",
        "description": "A plugin for Rain World",
        "homepage": "",
        "version": "0.3.0",
        "icon": ICON,
        "binaries": [GITHUB_BINARY],
    }
    data.update(overrides)
    return Submission(**data)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def store(data_dir: Path) -> JsonRegistryStore:
    s = JsonRegistryStore(data_dir)
    s.initialize()
    return s


@pytest.fixture
def clock():
    counter = itertools.count(1_700_000_000)
    return lambda: next(counter)


@pytest.fixture
def pipeline(store: JsonRegistryStore, clock) -> SubmissionPipeline:
    return SubmissionPipeline(store, BinaryURLResolver(), clock=clock)


@pytest.fixture
def client(store, pipeline, data_dir, monkeypatch):
    monkeypatch.setenv(dependencies.DATA_ROOT_ENV_VAR, str(data_dir))
    app.dependency_overrides[dependencies.get_store] = lambda: store
    app.dependency_overrides[dependencies.get_pipeline] = lambda: pipeline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
