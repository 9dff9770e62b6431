"""
Submission pipeline: validate, canonicalize and atomically upsert a mod.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from rdb.core.errors import (
    INTERNAL_ERROR_MESSAGE,
    BackendError,
    ErrorKind,
    RegistryError,
    ValidationError,
)
from rdb.domain.arbiter import VersionArbiter
from rdb.domain.binaries import BinaryURLResolver
from rdb.domain.models import ModInfo, Submission
from rdb.domain.normalizer import normalize_submission
from rdb.domain.search import tokenize_identity
from rdb.storage.db_manager import RegistryStore, UpsertOutcome

logger = logging.getLogger(__name__)

CREATED_MESSAGE = "Successfully inserted mod."
UPDATED_MESSAGE = "Successfully updated mod."


class SubmissionStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    REJECTED = "rejected"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class SubmissionResult:
    status: SubmissionStatus
    message: str
    error: Optional[ErrorKind] = None
    identity: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (SubmissionStatus.CREATED, SubmissionStatus.UPDATED)


def _unix_now() -> int:
    return int(time.time())


def shape_error_message(errors: Sequence[Mapping[str, Any]]) -> str:
    """
    Message for a submission that does not fit the expected shape. Request
    body locations are reported relative to the submission itself.
    """
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(loc) or "submission"
    return f"Invalid submission field '{field}': {first.get('msg', 'invalid value')}."


class SubmissionPipeline:
    """
    Turns untrusted submissions into authorized, versioned writes.

    The pipeline holds no mutable state of its own; every call is
    independent and all synchronization happens inside ``store.upsert``.
    """

    def __init__(
        self,
        store: RegistryStore,
        resolver: BinaryURLResolver,
        arbiter: Optional[VersionArbiter] = None,
        clock: Callable[[], int] = _unix_now,
    ):
        self.store = store
        self.resolver = resolver
        self.arbiter = arbiter or VersionArbiter()
        self.clock = clock

    def submit(self, raw: Union[Submission, Mapping[str, Any]]) -> SubmissionResult:
        try:
            submission = raw if isinstance(raw, Submission) else Submission.model_validate(raw)
        except PydanticValidationError as e:
            return self._rejected(ValidationError(shape_error_message(e.errors())))

        try:
            submission = normalize_submission(submission)
            binaries = self.resolver.resolve_all(submission.binaries)
        except ValidationError as e:
            return self._rejected(e)

        identity = submission.identity
        info = ModInfo(
            binaries=binaries,
            version=submission.version,
            description=submission.description,
            homepage=submission.homepage,
            icon=submission.icon,
        )

        try:
            outcome = self.store.upsert(
                identity,
                info,
                submission.secret,
                tokenize_identity(str(identity)),
                self.clock(),
                self.arbiter,
            )
        except BackendError as e:
            logger.error(f"Backend failure while upserting {identity}: {e.message}", exc_info=True)
            return SubmissionResult(
                SubmissionStatus.INTERNAL_ERROR,
                INTERNAL_ERROR_MESSAGE,
                ErrorKind.BACKEND,
                str(identity),
            )
        except RegistryError as e:
            logger.info(f"Rejected submission for {identity}: {e.message}")
            return SubmissionResult(SubmissionStatus.REJECTED, e.message, e.kind, str(identity))

        if outcome is UpsertOutcome.CREATED:
            logger.info(f"Created {identity} at version {info.version}")
            return SubmissionResult(SubmissionStatus.CREATED, CREATED_MESSAGE, identity=str(identity))

        logger.info(f"Updated {identity} to version {info.version}")
        return SubmissionResult(SubmissionStatus.UPDATED, UPDATED_MESSAGE, identity=str(identity))

    def _rejected(self, error: RegistryError) -> SubmissionResult:
        logger.debug(f"Rejected submission: {error.message}")
        return SubmissionResult(SubmissionStatus.REJECTED, error.message, error.kind)
