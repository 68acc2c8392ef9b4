from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse


router = APIRouter()


@router.get("/", include_in_schema=False)
async def dashboard_page(request: Request) -> FileResponse:
    static_dir = Path(request.app.state.settings.STATIC_DIR)
    return FileResponse(static_dir / "index.html", media_type="text/html")


@router.get("/healthz")
async def healthz() -> dict:
    return {"ok": True}
