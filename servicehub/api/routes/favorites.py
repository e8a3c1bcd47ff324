"""
Favorite business routes for the signed-in user.

- GET /favorites
- GET /favorites/check/{business_id}
- POST /favorites/{business_id}
- DELETE /favorites/{business_id}
"""
from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from servicehub.api.dependencies import get_current_user, get_db
from servicehub.api.routes.businesses import BusinessResponse
from servicehub.models.users import User
from servicehub.services.favorite_service import FavoriteService


router = APIRouter(prefix="/favorites", tags=["favorites"])


# Schemas
class FavoriteResponse(BaseModel):
    id: UUID
    user_id: UUID
    business_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class FavoriteCheckResponse(BaseModel):
    is_favorited: bool


def get_favorite_service(db: Session = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


@router.get("", response_model=List[BusinessResponse])
def list_favorites(
    caller: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
) -> List[BusinessResponse]:
    return [BusinessResponse.model_validate(b) for b in service.list_favorites(caller)]


@router.get("/check/{business_id}", response_model=FavoriteCheckResponse)
def check_favorite(
    business_id: UUID,
    caller: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteCheckResponse:
    return FavoriteCheckResponse(is_favorited=service.is_favorite(caller, business_id))


@router.post("/{business_id}", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
def add_favorite(
    business_id: UUID,
    caller: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteResponse:
    return FavoriteResponse.model_validate(service.add_favorite(caller, business_id))


@router.delete("/{business_id}")
def remove_favorite(
    business_id: UUID,
    caller: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
) -> dict:
    service.remove_favorite(caller, business_id)
    return {"message": "Business removed from favorites"}
