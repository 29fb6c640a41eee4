"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that the
application mounts under /api/v1.

Router Structure:
    - /videos: Video record endpoints (create, list, get, delete)
    - /videos/{video_id}/video, /videos/{video_id}/thumbnail: Upload endpoints
"""

import logging

from fastapi import APIRouter

from tubely.api.v1.upload import router as upload_router
from tubely.api.v1.videos import router as videos_router


logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(videos_router, prefix="/videos", tags=["videos"])
api_router.include_router(upload_router, prefix="/videos", tags=["upload"])


__all__ = ["api_router"]
