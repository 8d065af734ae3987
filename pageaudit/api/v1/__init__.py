"""
API v1 routes.
"""

from fastapi import APIRouter

from pageaudit.api.v1 import audits, runs

router = APIRouter()

router.include_router(audits.router, prefix="/audits", tags=["Audits"])
router.include_router(runs.router, prefix="/runs", tags=["Runs"])
