from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, confloat
from sqlalchemy.orm import Session

from painel.db.base import get_db
from painel.routes.auth import get_current_user, User  # type: ignore
from painel.routes.common import raise_http_error
from painel.services.errors import ServiceError
from painel.services.recommendations import (
    products_for_profile,
    recommend_for_profile_type,
    recommend_for_user,
    serialize_product,
    serialize_recommendation,
)
from painel.services.stores import SqlProductCatalog, SqlProfileStore
from painel.settings import get_settings

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


class ProfileBasedRequest(BaseModel):
    profile_type: Optional[str] = None
    available_amount: confloat(ge=0) = 10000.0
    use_stored_profile: bool = False


@router.get("")
def user_recommendations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    engine = get_settings().engine
    try:
        result = recommend_for_user(
            user.id,
            profiles=SqlProfileStore(db),
            products=SqlProductCatalog(db),
            limit=engine.recommendation_limit,
            suggested_amount=engine.recommendation_default_amount,
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return serialize_recommendation(result)


@router.post("/profile-based")
def profile_based_recommendations(
    body: ProfileBasedRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    engine = get_settings().engine
    try:
        if body.use_stored_profile:
            result = recommend_for_user(
                user.id,
                profiles=SqlProfileStore(db),
                products=SqlProductCatalog(db),
                limit=engine.recommendation_limit,
                suggested_amount=body.available_amount,
            )
        elif body.profile_type:
            result = recommend_for_profile_type(
                body.profile_type,
                body.available_amount,
                products=SqlProductCatalog(db),
                limit=engine.recommendation_limit,
            )
        else:
            raise HTTPException(
                status_code=400,
                detail="Informe profile_type ou use_stored_profile",
            )
    except ServiceError as exc:
        raise_http_error(exc)
    return serialize_recommendation(result)


@router.get("/products/{profile_type}")
def products_by_profile(profile_type: str, db: Session = Depends(get_db)):
    try:
        products = products_for_profile(profile_type, products=SqlProductCatalog(db))
    except ServiceError as exc:
        raise_http_error(exc)
    return [serialize_product(p) for p in products]
