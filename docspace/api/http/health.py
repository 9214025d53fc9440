from fastapi import APIRouter

from docspace import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness probe"""
    return {"status": "healthy", "version": __version__}


@router.get("/")
async def root():
    return {
        "message": "docspace API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
