from typing import Any, Dict

from fastapi import APIRouter

from ... import __version__
from ...config import settings

router = APIRouter()


@router.get("/health", response_model=Dict[str, Any])
async def health_check() -> Dict[str, Any]:
    """Health check endpoint to verify the API is running."""
    return {
        "status": "healthy",
        "version": __version__,
        "env": settings.env,
    }
