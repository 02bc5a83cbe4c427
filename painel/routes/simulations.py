from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, conint, confloat
from sqlalchemy.orm import Session

from painel.db.base import get_db
from painel.routes.auth import get_current_user, User  # type: ignore
from painel.routes.common import raise_http_error
from painel.services.errors import ServiceError
from painel.services.simulation import (
    get_history,
    get_simulation,
    serialize_history_item,
    serialize_simulation,
    simulate,
)
from painel.services.stores import (
    SqlProductCatalog,
    SqlProfileStore,
    SqlSimulationStore,
)
from painel.settings import get_settings

router = APIRouter(prefix="/simulations", tags=["simulations"])


class SimulationRequest(BaseModel):
    # Faixas de valor e prazo são validadas pelo motor de simulação
    invested_amount: confloat(allow_inf_nan=False)
    investment_months: int
    product_ids: Optional[List[conint(ge=1)]] = None


@router.post("")
def create_simulation(
    body: SimulationRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        result = simulate(
            user.id,
            body.invested_amount,
            body.investment_months,
            body.product_ids,
            profiles=SqlProfileStore(db),
            products=SqlProductCatalog(db),
            simulations=SqlSimulationStore(db),
            max_months=get_settings().engine.simulation_max_months,
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return serialize_simulation(result)


@router.get("")
def simulation_history(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        items = get_history(user.id, simulations=SqlSimulationStore(db))
    except ServiceError as exc:
        raise_http_error(exc)
    return [serialize_history_item(item) for item in items]


@router.get("/{simulation_id}")
def simulation_detail(
    simulation_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        result = get_simulation(simulation_id, simulations=SqlSimulationStore(db))
    except ServiceError as exc:
        raise_http_error(exc)
    # Simulação de outro usuário é tratada como inexistente
    if result is None or result.user_id != user.id:
        raise HTTPException(status_code=404, detail="Simulação não encontrada")
    return serialize_simulation(result)
