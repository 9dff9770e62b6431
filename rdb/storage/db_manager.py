from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from rdb.domain.arbiter import VersionArbiter
from rdb.domain.models import Identity, ModEntry, ModInfo, RegistryConfig


class UpsertOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class SortOrder(str, Enum):
    NEW = "new"
    OLD = "old"
    MOST_DOWNLOADS = "most-downloads"
    LEAST_DOWNLOADS = "least-downloads"


class RegistryStore(ABC):
    """
    Abstract base class for mod storage.

    Implementations raise :class:`rdb.core.errors.BackendError` for any
    infrastructure failure.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the storage subsystem (e.g. load from disk)."""
        pass

    @abstractmethod
    def get_registry_config(self) -> RegistryConfig:
        """Retrieve registry configuration."""
        pass

    @abstractmethod
    def save_registry_config(self, config: RegistryConfig) -> None:
        """Save registry configuration."""
        pass

    @abstractmethod
    def upsert(
        self,
        identity: Identity,
        info: ModInfo,
        secret: str,
        search: str,
        now: int,
        arbiter: VersionArbiter,
    ) -> UpsertOutcome:
        """
        Insert a new entry or conditionally replace an existing one.

        Reading the existing entry, asking ``arbiter`` for a verdict and
        writing must be a single atomic operation. Raises
        AuthorizationError or StaleVersionError without mutating anything
        when the arbiter rejects the write.
        """
        pass

    @abstractmethod
    def get_entry(self, identity: Identity) -> Optional[ModEntry]:
        """Get a single entry by identity."""
        pass

    @abstractmethod
    def list_entries(
        self,
        page: int = 0,
        sort: SortOrder = SortOrder.NEW,
        search: Optional[str] = None,
    ) -> List[ModEntry]:
        """Get one page of entries, sorted and optionally filtered by a search query."""
        pass

    @abstractmethod
    def count_entries(self) -> int:
        """Number of stored entries."""
        pass
