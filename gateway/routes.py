import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, JSONResponse

from gateway import vars as gateway_vars
from gateway.models import HealthStatus

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

INDEX_DOCUMENT = "index.html"


def _utc_timestamp() -> str:
    # Same shape as JavaScript's Date.toISOString(): 2024-01-01T00:00:00.000Z
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/health", response_model=HealthStatus)
async def health():
    return HealthStatus(status="OK", timestamp=_utc_timestamp())


def resolve_static_file(static_dir: Path, requested: str) -> Path:
    """
    Map a request path onto the front-end bundle.

    Existing files inside the bundle are served as-is; anything else, including
    paths that would escape the bundle directory, gets the entry document so
    the client-side router can handle it.
    """
    root = static_dir.resolve()
    if requested:
        candidate = (root / requested).resolve()
        if candidate.is_relative_to(root) and candidate.is_file():
            return candidate
    return root / INDEX_DOCUMENT


@router.get("/{full_path:path}", include_in_schema=False)
async def serve_frontend(full_path: str):
    static_dir = Path(gateway_vars.STATIC_DIR)
    target = resolve_static_file(static_dir, full_path)
    if not target.is_file():
        logger.warning(f"[Frontend] No bundle at {static_dir}, cannot serve /{full_path}")
        return JSONResponse(status_code=404, content={"error": "Front-end bundle not found"})
    return FileResponse(target)
