from fastapi import APIRouter
from roomdash.api import pages, ws_dashboard

router = APIRouter()
router.include_router(pages.router, tags=["pages"])
router.include_router(ws_dashboard.router, tags=["dashboard-ws"])
