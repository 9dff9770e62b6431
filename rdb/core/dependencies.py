from pathlib import Path
from typing import Optional
import os

from rdb.storage.db_manager import RegistryStore
from rdb.storage.json_db_manager import JsonRegistryStore
from rdb.domain.binaries import BinaryURLResolver, build_rules
from rdb.services.submission import SubmissionPipeline

DATA_ROOT_ENV_VAR = "RDB_DATA_DIR"
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"

_store: Optional[RegistryStore] = None
_pipeline: Optional[SubmissionPipeline] = None

def get_data_dir() -> Path:
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = _DEFAULT_DATA_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d

def get_store() -> RegistryStore:
    global _store
    if _store is None:
        _store = JsonRegistryStore(get_data_dir())
        _store.initialize()
    return _store

def get_pipeline() -> SubmissionPipeline:
    global _pipeline
    if _pipeline is None:
        store = get_store()
        config = store.get_registry_config()
        resolver = BinaryURLResolver(build_rules(config.github_release_owners))
        _pipeline = SubmissionPipeline(store, resolver)
    return _pipeline
