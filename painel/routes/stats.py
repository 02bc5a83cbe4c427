from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from painel.db.base import get_db
from painel.routes.common import raise_http_error
from painel.services.errors import ServiceError
from painel.services.stats import (
    daily_stats,
    serialize_stat,
    serialize_stats,
    top_products,
)
from painel.services.stores import SqlProductCatalog, SqlSimulationStore
from painel.settings import get_settings

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/products/daily")
def product_daily_stats(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    product_id: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        result = daily_stats(
            start_date,
            end_date,
            product_id=product_id,
            category=category,
            simulations=SqlSimulationStore(db),
            products=SqlProductCatalog(db),
            window_days=get_settings().engine.stats_default_window_days,
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return serialize_stats(result)


@router.get("/products/top")
def most_simulated_products(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    top_count: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    engine = get_settings().engine
    count = engine.stats_default_top_count if top_count is None else top_count
    try:
        ranked = top_products(
            start_date,
            end_date,
            count,
            simulations=SqlSimulationStore(db),
            products=SqlProductCatalog(db),
            window_days=engine.stats_default_window_days,
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return [serialize_stat(s) for s in ranked]


@router.get("/products/{product_id}/daily")
def single_product_daily_stats(
    product_id: int,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        result = daily_stats(
            start_date,
            end_date,
            product_id=product_id,
            simulations=SqlSimulationStore(db),
            products=SqlProductCatalog(db),
            window_days=get_settings().engine.stats_default_window_days,
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return serialize_stats(result)
