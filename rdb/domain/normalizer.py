"""
Syntactic validation of incoming submissions.

``normalize_submission`` is pure: it returns a trimmed copy of the submission
or raises the first :class:`ValidationError` it finds. Checks run in a fixed
order so the same bad input always produces the same message.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from rdb.core.errors import ValidationError
from rdb.domain.models import Submission
from rdb.domain.semver import try_parse_semver

MAX_IDENTITY_CHARS = 39
MAX_SECRET_BYTES = 500
MAX_VERSION_BYTES = 50
MAX_FIELD_BYTES = 500

_IDENTITY_CHARS = re.compile(r"[A-Za-z0-9._-]+")
_HTTP_URL = TypeAdapter(HttpUrl)


def _byte_len(value: str) -> int:
    return len(value.encode("utf-8"))


def is_https_url(value: str) -> bool:
    try:
        url = _HTTP_URL.validate_python(value)
    except PydanticValidationError:
        return False
    return url.scheme == "https"


def _first_error(s: Submission) -> Optional[str]:
    if not s.name or len(s.name) > MAX_IDENTITY_CHARS:
        return "Name must be 1-39 characters."
    if not s.owner or len(s.owner) > MAX_IDENTITY_CHARS:
        return "Owner must be 1-39 characters."
    if not s.secret or _byte_len(s.secret) > MAX_SECRET_BYTES:
        return "Secret must be 1-500 bytes."
    if not s.version or _byte_len(s.version) > MAX_VERSION_BYTES:
        return "Version must be 1-50 bytes."
    if _byte_len(s.description) > MAX_FIELD_BYTES:
        return "Description must be 500 bytes or less."
    if _byte_len(s.homepage) > MAX_FIELD_BYTES:
        return "Homepage URL must be 500 bytes or less."
    if _byte_len(s.icon) > MAX_FIELD_BYTES:
        return "Icon URL must be 500 bytes or less."
    if not s.binaries:
        return "Binaries must contain at least one URL."
    if any(_byte_len(b) > MAX_FIELD_BYTES for b in s.binaries):
        return "Binary URLs must be 500 bytes or less."
    if not _IDENTITY_CHARS.fullmatch(s.name):
        return "Name must match [a-zA-Z0-9_-.]."
    if not _IDENTITY_CHARS.fullmatch(s.owner):
        return "Owner must match [a-zA-Z0-9_-.]."
    if try_parse_semver(s.version) is None:
        return "Version must comply with https://semver.org."
    if s.homepage and not is_https_url(s.homepage):
        return "Homepage must be a URL using the HTTPS scheme."
    if not is_https_url(s.icon):
        return "Icon must be a URL using the HTTPS scheme."
    return None


def normalize_submission(submission: Submission) -> Submission:
    """
    Trim every string field, strip a leading 'v'/'V' from the version and
    bounds-check the result.
    """
    normalized = submission.model_copy(
        update={
            "name": submission.name.strip(),
            "owner": submission.owner.strip(),
            "secret": submission.secret.strip(),
            "description": submission.description.strip(),
            "homepage": submission.homepage.strip(),
            "version": submission.version.strip().lstrip("vV"),
            "icon": submission.icon.strip(),
            "binaries": [b.strip() for b in submission.binaries],
        }
    )

    error = _first_error(normalized)
    if error is not None:
        raise ValidationError(error)
    return normalized
