import logging
import os
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from rdb.core.dependencies import get_data_dir, get_store
from rdb.services.submission import shape_error_message

# Configure logging
logging.basicConfig(
    level=os.environ.get("RDB_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="rdb",
    version="0.1.0",
    description="Public registry of mods, with versioned submissions authorized by a per-mod secret.",
)

# HTML templates (Jinja2)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


@app.on_event("startup")
async def startup_event() -> None:
    """
    Resolve the data directory, load registry.json and mods.json.
    """
    logger.info(f"Using data directory {get_data_dir()}")
    store = get_store()
    logger.info(f"Registry ready with {store.count_entries()} mods")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    A submission body that does not fit the expected shape is rejected like
    any other invalid submission. Other requests keep the default 422.
    """
    if request.method == "POST" and request.url.path.rstrip("/") == "/mods":
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": shape_error_message(exc.errors())},
        )
    return await request_validation_exception_handler(request, exc)


@app.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    """
    Landing page documenting the API.
    """
    return templates.TemplateResponse(
        request,
        "index.html",
        {"title": "rdb"},
    )


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


from rdb.api.mods import router as mods_router
from rdb.api.github import router as github_router

app.include_router(mods_router, prefix="/mods", tags=["mods"])
app.include_router(github_router, prefix="/github", tags=["github"])


if __name__ == "__main__":
    """
    Allow running `python -m rdb.main` to start the Uvicorn development server.
    """
    import uvicorn

    uvicorn.run(
        "rdb.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
