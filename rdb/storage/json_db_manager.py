import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from rdb.core.errors import BackendError
from rdb.domain.arbiter import Verification, VersionArbiter
from rdb.domain.models import (
    Identity,
    ModEntry,
    ModInfo,
    ModRegistryFile,
    RegistryConfig,
)
from rdb.domain.search import matches_search, search_terms
from rdb.storage.db_manager import RegistryStore, SortOrder, UpsertOutcome

logger = logging.getLogger(__name__)

CONFIG_FILE = "registry.json"
MODS_FILE = "mods.json"


class JsonRegistryStore(RegistryStore):
    """
    Registry store backed by a single JSON document on disk.

    Writers are serialized by a lock taken with a timeout. The in-memory
    mapping is replaced, never mutated, so readers always see a complete
    snapshot without locking. A new snapshot only becomes visible after it
    has been durably written.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = data_dir
        self._registry_config: Optional[RegistryConfig] = None
        self._entries: Dict[str, ModEntry] = {}
        self._lock = threading.Lock()

        # Ensure data directory exists
        if not self._data_dir.exists():
            self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def mods_path(self) -> Path:
        return self._data_dir / MODS_FILE

    def initialize(self) -> None:
        self._load_registry_config()
        self._entries = self._load_entries()
        logger.info(f"Loaded {len(self._entries)} mods from {self.mods_path}")

    def get_registry_config(self) -> RegistryConfig:
        if self._registry_config is None:
            return self._load_registry_config()
        return self._registry_config

    def save_registry_config(self, config: RegistryConfig) -> None:
        self._registry_config = config
        self._write_atomic(self._data_dir / CONFIG_FILE, config.model_dump_json(indent=2))

    def upsert(
        self,
        identity: Identity,
        info: ModInfo,
        secret: str,
        search: str,
        now: int,
        arbiter: VersionArbiter,
    ) -> UpsertOutcome:
        key = str(identity)
        timeout = self.get_registry_config().lock_timeout_seconds

        if not self._lock.acquire(timeout=timeout):
            raise BackendError(f"Timed out after {timeout}s waiting for the registry lock ({key})")
        try:
            current = self._merge_downloads(self._entries)
            existing = current.get(key)
            verdict = arbiter.authorize(existing, secret, info.version)

            if verdict is Verification.NOT_FOUND:
                entry = ModEntry(
                    id=key,
                    secret=secret,
                    search=search,
                    published=now,
                    updated=now,
                    info=info,
                )
                outcome = UpsertOutcome.CREATED
            else:
                entry = existing.model_copy(update={"info": info, "search": search, "updated": now})
                outcome = UpsertOutcome.UPDATED

            entries = dict(current)
            entries[key] = entry
            self._persist(entries)
            self._entries = entries
        finally:
            self._lock.release()

        return outcome

    def get_entry(self, identity: Identity) -> Optional[ModEntry]:
        return self._entries.get(str(identity))

    def list_entries(
        self,
        page: int = 0,
        sort: SortOrder = SortOrder.NEW,
        search: Optional[str] = None,
    ) -> List[ModEntry]:
        entries = list(self._entries.values())

        if search:
            terms = search_terms(search)
            entries = [e for e in entries if matches_search(e.search, terms)]

        # Stable sorts: identity first so ties come out in a fixed order.
        entries.sort(key=lambda e: e.id)
        if sort is SortOrder.NEW:
            entries.sort(key=lambda e: e.updated, reverse=True)
        elif sort is SortOrder.OLD:
            entries.sort(key=lambda e: e.updated)
        elif sort is SortOrder.MOST_DOWNLOADS:
            entries.sort(key=lambda e: e.downloads or 0, reverse=True)
        elif sort is SortOrder.LEAST_DOWNLOADS:
            entries.sort(key=lambda e: e.downloads or 0)

        page_size = self.get_registry_config().page_size
        start = max(page, 0) * page_size
        return entries[start:start + page_size]

    def count_entries(self) -> int:
        return len(self._entries)

    def _persist(self, entries: Dict[str, ModEntry]) -> None:
        document = {"mods": [e.to_document() for e in entries.values()]}
        self._write_atomic(self.mods_path, json.dumps(document, indent=2))

    def _write_atomic(self, path: Path, text: str) -> None:
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise BackendError(f"Failed to write {path}: {e}") from e

    def _merge_downloads(self, entries: Dict[str, ModEntry]) -> Dict[str, ModEntry]:
        """
        Pick up download counts written to disk by the external counter since
        the last load, so a rewrite of the file never reverts them.
        """
        on_disk = self._load_entries()
        merged = {}
        for key, entry in entries.items():
            stored = on_disk.get(key)
            if stored is not None and stored.downloads != entry.downloads:
                entry = entry.model_copy(update={"downloads": stored.downloads})
            merged[key] = entry
        return merged

    def _load_entries(self) -> Dict[str, ModEntry]:
        path = self.mods_path
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            stored = ModRegistryFile.model_validate(raw)
        except (OSError, ValueError, PydanticValidationError) as e:
            raise BackendError(f"Failed to load {path}: {e}") from e
        return {entry.id: entry for entry in stored.mods}

    def _load_registry_config(self) -> RegistryConfig:
        path = self._data_dir / CONFIG_FILE
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                config = RegistryConfig(**raw)
            except Exception:
                logger.warning(f"Could not parse {path}; falling back to defaults", exc_info=True)
                config = RegistryConfig()
        else:
            config = RegistryConfig()

        # Persist with all fields populated (including any new defaults).
        self.save_registry_config(config)
        return config
