"""
Backend API package initialization.

Router modules:
- snapshot: POST /snapshot snapshot comparison endpoint
"""

from fastapi import APIRouter

from brand_snapshot.api.snapshot import router as snapshot_router

# Create main API router
api_router = APIRouter()

api_router.include_router(snapshot_router, tags=["snapshot"])  # Has its own /snapshot prefix

__all__ = [
    "api_router",
    "snapshot_router",
]
