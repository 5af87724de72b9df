"""Health check endpoint. Open route: no registry details."""

from fastapi import APIRouter

from warden import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy", "server": "ok", "version": __version__}
