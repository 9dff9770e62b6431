from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from rdb.core.dependencies import get_pipeline, get_store
from rdb.domain.models import Identity, ModView, Submission
from rdb.services.submission import SubmissionPipeline, SubmissionResult, SubmissionStatus
from rdb.storage.db_manager import RegistryStore, SortOrder

router = APIRouter()


def submission_response(result: SubmissionResult) -> JSONResponse:
    """
    Translate a pipeline result into the HTTP response shared by every
    submission entry point.
    """
    if result.status is SubmissionStatus.REJECTED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    if result.status is SubmissionStatus.INTERNAL_ERROR:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    code = status.HTTP_201_CREATED if result.status is SubmissionStatus.CREATED else status.HTTP_200_OK
    return JSONResponse(
        status_code=code,
        content={"status": result.status.value, "message": result.message},
    )


# ---------------------------------------------------------------------------
# 1. POST /mods
# ---------------------------------------------------------------------------

@router.post("")
async def submit_mod(
    body: Submission,
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Submit a mod. If a mod with the same owner/name already exists, the
    secret must match and the version must be newer.
    """
    result = await run_in_threadpool(pipeline.submit, body)
    return submission_response(result)


# ---------------------------------------------------------------------------
# 2. GET /mods/count
# ---------------------------------------------------------------------------

@router.get("/count")
async def count_mods(store: RegistryStore = Depends(get_store)) -> int:
    return store.count_entries()


# ---------------------------------------------------------------------------
# 3. GET /mods/{owner}/{name}
# ---------------------------------------------------------------------------

@router.get("/{owner}/{name}")
async def get_mod(
    owner: str,
    name: str,
    store: RegistryStore = Depends(get_store),
) -> ModView:
    entry = store.get_entry(Identity(owner=owner, name=name))
    if entry is None:
        raise HTTPException(status_code=404, detail="Mod not found")
    return ModView.from_entry(entry)


# ---------------------------------------------------------------------------
# 4. GET /mods?page=&sort=&search=
# ---------------------------------------------------------------------------

@router.get("")
async def list_mods(
    page: int = Query(0, ge=0),
    sort: str = Query(SortOrder.NEW.value),
    search: Optional[str] = Query(None),
    store: RegistryStore = Depends(get_store),
) -> List[ModView]:
    """
    One page of mods. ``sort`` is one of new, old, most-downloads or
    least-downloads; ``search`` filters by words in the owner or name.
    """
    try:
        order = SortOrder(sort)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown sort order '{sort}'")

    entries = store.list_entries(page=page, sort=order, search=search)
    return [ModView.from_entry(e) for e in entries]
