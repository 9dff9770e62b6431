"""
Authorization and version gate for writes to an existing identity.
"""

from __future__ import annotations

import secrets
from enum import Enum
from typing import Optional

from rdb.core.errors import AuthorizationError, StaleVersionError
from rdb.domain.models import ModEntry
from rdb.domain.semver import is_newer


class Verification(str, Enum):
    NOT_FOUND = "not_found"
    FAILURE = "failure"
    OLD = "old"
    SUCCESS = "success"


class VersionArbiter:
    """
    Decides whether a candidate write may replace the stored entry.

    The store calls :meth:`verify` while it holds its write lock, so the
    decision and the write are one atomic step.
    """

    def verify(self, existing: Optional[ModEntry], secret: str, version: str) -> Verification:
        if existing is None:
            return Verification.NOT_FOUND
        if not secrets.compare_digest(existing.secret.encode("utf-8"), secret.encode("utf-8")):
            return Verification.FAILURE
        if not is_newer(version, existing.info.version):
            return Verification.OLD
        return Verification.SUCCESS

    def authorize(self, existing: Optional[ModEntry], secret: str, version: str) -> Verification:
        """
        Like :meth:`verify` but raises for the rejecting outcomes.
        """
        verdict = self.verify(existing, secret, version)
        if verdict is Verification.FAILURE:
            raise AuthorizationError()
        if verdict is Verification.OLD:
            raise StaleVersionError()
        return verdict
