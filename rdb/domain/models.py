"""
Pydantic models for the mod registry.

This module defines all data models used throughout the application, including:
- Registry configuration
- Submissions and persisted mod entries
- The public view returned by read endpoints
- GitHub webhook payloads

All models use Pydantic for validation, serialization, and type safety.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Registry Configuration Models
# ---------------------------------------------------------------------------


class RegistryConfig(BaseModel):
    """
    Top-level configuration for the registry.

    Persisted at: <DATA_DIR>/registry.json
    """

    page_size: int = Field(
        default=20,
        ge=1,
        description="Number of mods returned per page by the listing endpoint.",
    )
    lock_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long a write waits for the store lock before failing with a backend error.",
    )
    github_release_owners: List[str] = Field(
        default_factory=lambda: ["Dual-Iron"],
        description="GitHub owners whose release assets are accepted as binary URLs.",
    )
    contact: str = Field(
        default="Dual (Discord ID 303617148411183105)",
        description="Who to contact to get a mod removed; shown to webhook users on deleted releases.",
    )


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class Identity(BaseModel):
    """
    The immutable (owner, name) key of a registry entry.
    """

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "Identity":
        owner, sep, name = value.partition("/")
        if not sep:
            raise ValueError(f"Identity must look like 'owner/name', got {value!r}")
        return cls(owner=owner, name=name)


# ---------------------------------------------------------------------------
# Submission Models
# ---------------------------------------------------------------------------


class Submission(BaseModel):
    """
    An untrusted request to create or update a mod.

    Both manual submissions (POST /mods) and the GitHub webhook adapter
    produce this shape. Nothing here is trusted until it has been through
    the normalizer.
    """

    name: str = Field(description="Mod name, 1-39 characters of [A-Za-z0-9._-].")
    owner: str = Field(description="Mod owner, 1-39 characters of [A-Za-z0-9._-].")
    secret: str = Field(description="Shared secret that authorizes future updates to this mod.")
    description: str = Field(default="", description="Short description of the mod.")
    homepage: str = Field(default="", description="Optional HTTPS homepage URL.")
    version: str = Field(description="Semantic version; a leading 'v' or 'V' is ignored.")
    icon: str = Field(description="HTTPS URL of the mod icon.")
    binaries: List[str] = Field(
        default_factory=list,
        description="Download URLs; each must be a Google Drive file, GitHub release asset, or Discord attachment.",
    )

    @property
    def identity(self) -> Identity:
        return Identity(owner=self.owner, name=self.name)


# ---------------------------------------------------------------------------
# Persisted Entry Models
# ---------------------------------------------------------------------------


class ModInfo(BaseModel):
    """
    The mutable payload of an entry, replaced wholesale on every accepted write.
    """

    binaries: List[str] = Field(description="Canonicalized binary download URLs.")
    version: str = Field(description="Semantic version of this release.")
    description: str = Field(default="")
    homepage: str = Field(default="")
    icon: str = Field(default="")


class ModEntry(BaseModel):
    """
    A persisted registry record.

    ``id``, ``secret`` and ``published`` are fixed at creation. ``downloads``
    belongs to an external counter and is carried through untouched.

    Persisted in: <DATA_DIR>/mods.json
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id", description="Identity string 'owner/name'.")
    secret: str = Field(description="Shared secret set at creation.")
    search: str = Field(description="Space-separated search tokens derived from the identity.")
    published: int = Field(description="Unix timestamp (seconds) of the first accepted write.")
    updated: int = Field(description="Unix timestamp (seconds) of the latest accepted write.")
    downloads: Optional[int] = Field(
        default=None,
        description="Download counter maintained outside the registry; absent until first counted.",
    )
    info: ModInfo

    @property
    def identity(self) -> Identity:
        return Identity.parse(self.id)

    def to_document(self) -> dict:
        """Serialize to the stored JSON shape (``_id`` key, no null downloads)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ModRegistryFile(BaseModel):
    """On-disk layout of mods.json."""

    mods: List[ModEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# API Response Models
# ---------------------------------------------------------------------------


class ModView(BaseModel):
    """
    What read endpoints expose for an entry. Never includes the secret.
    """

    name: str
    owner: str
    published: int
    updated: int
    downloads: int = 0
    description: str
    homepage: str
    version: str
    icon: str
    binaries: List[str]

    @classmethod
    def from_entry(cls, entry: ModEntry) -> "ModView":
        identity = entry.identity
        return cls(
            name=identity.name,
            owner=identity.owner,
            published=entry.published,
            updated=entry.updated,
            downloads=entry.downloads or 0,
            description=entry.info.description,
            homepage=entry.info.homepage,
            version=entry.info.version,
            icon=entry.info.icon,
            binaries=list(entry.info.binaries),
        )


# ---------------------------------------------------------------------------
# GitHub Webhook Models
# ---------------------------------------------------------------------------


class GitHubRepository(BaseModel):
    full_name: str
    description: Optional[str] = None
    homepage: Optional[str] = None


class GitHubAsset(BaseModel):
    browser_download_url: str


class GitHubRelease(BaseModel):
    tag_name: str
    assets: List[GitHubAsset] = Field(default_factory=list)


class GitHubPingPayload(BaseModel):
    repository: GitHubRepository


class GitHubReleasePayload(BaseModel):
    action: str
    repository: GitHubRepository
    release: GitHubRelease
