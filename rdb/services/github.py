"""
GitHub webhook adapter.

Converts release events into submissions so they flow through exactly the
same pipeline as manual POST /mods requests.
"""

from __future__ import annotations

from typing import Optional

from rdb.domain.models import (
    GitHubPingPayload,
    GitHubReleasePayload,
    GitHubRepository,
    Submission,
)

DELETED_ACTION = "deleted"
BAD_FORMAT_MESSAGE = "Bad format. Did you have a release asset?"


def default_homepage(repository: GitHubRepository) -> str:
    return repository.homepage or f"https://github.com/{repository.full_name}#readme"


def icon_url(full_name: str, tag: str) -> str:
    return f"https://raw.githubusercontent.com/{full_name}/{tag}/icon.png"


def deleted_release_message(contact: str) -> str:
    return (
        "Deleted releases are ignored by rdb.\n"
        "To overwrite release information, submit a new release.\n"
        f"To delete your mod from rdb, contact {contact}."
    )


def ping_message(payload: GitHubPingPayload) -> Optional[str]:
    """
    Text shown in the GitHub UI after the webhook is installed.

    Returns None if the repository name is malformed.
    """
    repo = payload.repository
    owner, sep, name = repo.full_name.partition("/")
    if not sep or not owner or not name:
        return None

    icon = icon_url(repo.full_name, "{tag name}")
    return (
        "Successfully connected to rdb! The next release you create or edit will be synced to rdb.\n"
        "\n"
        "Current (unpublished) information:\n"
        f"    name            {name}\n"
        f"    owner           {owner}\n"
        f"    description     {repo.description or ''}\n"
        f"    icon            {icon}\n"
        f"    homepage        {default_homepage(repo)}\n"
        "    version         --\n"
        "    binaries        --\n"
    )


def extract_submission(payload: GitHubReleasePayload, secret: str) -> Optional[Submission]:
    """
    Build a submission from a release event, or None if the payload lacks
    a well-formed repository name or any release asset.
    """
    repo = payload.repository
    release = payload.release

    owner, sep, name = repo.full_name.partition("/")
    if not sep or not owner or not name:
        return None

    binaries = [asset.browser_download_url for asset in release.assets]
    if not binaries:
        return None

    return Submission(
        name=name,
        owner=owner,
        secret=secret,
        description=repo.description or "",
        homepage=default_homepage(repo),
        icon=icon_url(repo.full_name, release.tag_name),
        version=release.tag_name,
        binaries=binaries,
    )
