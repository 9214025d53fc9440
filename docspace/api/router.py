from fastapi import APIRouter

from docspace.api.http import documents, favorites, otp, users, workspaces

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(users.router)
api_router.include_router(otp.router)
api_router.include_router(workspaces.router)
api_router.include_router(documents.router)
api_router.include_router(favorites.router)
