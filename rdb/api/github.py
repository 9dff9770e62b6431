"""
GitHub webhook endpoint.

Install ``https://<host>/github?secret=<your secret>`` as a repository
webhook with the "Releases" event. Every published or edited release is then
submitted to the registry as if it had been posted to /mods.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError as PydanticValidationError

from rdb.api.mods import submission_response
from rdb.core.dependencies import get_pipeline
from rdb.domain.models import GitHubPingPayload, GitHubReleasePayload
from rdb.services.github import (
    BAD_FORMAT_MESSAGE,
    DELETED_ACTION,
    deleted_release_message,
    extract_submission,
    ping_message,
)
from rdb.services.submission import SubmissionPipeline

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("")
async def github_webhook(
    payload: Dict[str, Any] = Body(...),
    secret: Optional[str] = Query(None),
    x_github_event: Optional[str] = Header(None),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> Response:
    if x_github_event == "ping":
        try:
            ping = GitHubPingPayload.model_validate(payload)
        except PydanticValidationError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BAD_FORMAT_MESSAGE)
        message = ping_message(ping)
        if message is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BAD_FORMAT_MESSAGE)
        return PlainTextResponse(message)

    if x_github_event != "release":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported GitHub event '{x_github_event}'",
        )

    if not secret:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The webhook URL must include a ?secret= query parameter.",
        )

    try:
        release = GitHubReleasePayload.model_validate(payload)
    except PydanticValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BAD_FORMAT_MESSAGE)

    if release.action == DELETED_ACTION:
        contact = pipeline.store.get_registry_config().contact
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=deleted_release_message(contact),
        )

    submission = extract_submission(release, secret)
    if submission is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BAD_FORMAT_MESSAGE)

    logger.info(f"Release '{release.release.tag_name}' received for {release.repository.full_name}")
    result = await run_in_threadpool(pipeline.submit, submission)
    return submission_response(result)
