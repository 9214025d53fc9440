from docspace.domains.favorites.schemas import FavoriteCheckResponse, FavoriteResponse
from docspace.domains.favorites.services import FavoriteService

__all__ = ["FavoriteCheckResponse", "FavoriteResponse", "FavoriteService"]
