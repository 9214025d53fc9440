from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FavoriteResponse(BaseModel):
    user_id: str
    workspace_id: str
    favorited_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FavoriteCheckResponse(BaseModel):
    is_favorited: bool
