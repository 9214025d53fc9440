from docspace.api.http.documents import router as documents_router
from docspace.api.http.favorites import router as favorites_router
from docspace.api.http.health import router as health_router
from docspace.api.http.otp import router as otp_router
from docspace.api.http.users import router as users_router
from docspace.api.http.workspaces import router as workspaces_router

__all__ = [
    "documents_router",
    "favorites_router",
    "health_router",
    "otp_router",
    "users_router",
    "workspaces_router",
]
