from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from painel.services.allocations import get_distribution
from painel.services.domain import Product, ProfileType, SimulationRecord
from painel.services.errors import NotFoundError, ValidationError
from painel.services.simulation_details import (
    ProductSimulationResult,
    dump_details,
    load_details,
)
from painel.services.stores import ProductCatalog, ProfileStore, SimulationStore

logger = logging.getLogger(__name__)


MAX_INVESTMENT_MONTHS = 360  # 30 anos

# Tabela regressiva do IR: (até N meses, alíquota)
TAX_BRACKETS: Sequence[Tuple[int, float]] = (
    (6, 0.225),
    (12, 0.20),
    (24, 0.175),
)
LONG_TERM_TAX_RATE = 0.15


@dataclass
class ProductAllocation:
    product: Product
    allocated_amount: float


@dataclass(frozen=True)
class SimulationResult:
    id: Optional[int]
    user_id: int
    profile_type: str
    invested_amount: float
    investment_months: int
    total_return: float
    net_return: float
    total_amount: float
    return_rate: float
    product_simulations: Sequence[ProductSimulationResult]
    simulated_at: Optional[datetime]


@dataclass(frozen=True)
class SimulationHistoryItem:
    id: int
    invested_amount: float
    investment_months: int
    total_amount: float
    return_rate: float
    simulated_at: Optional[datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _return_rate(net_return: float, invested_amount: float) -> float:
    if invested_amount <= 0:
        return 0.0
    return net_return / invested_amount * 100


def validate_request(
    invested_amount: float,
    investment_months: int,
    max_months: int = MAX_INVESTMENT_MONTHS,
) -> None:
    amount = float(invested_amount)
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("O valor investido deve ser maior que zero")
    if investment_months <= 0:
        raise ValidationError("O período de investimento deve ser maior que zero")
    # Configuração só pode reduzir o teto
    limit = min(max_months, MAX_INVESTMENT_MONTHS)
    if investment_months > limit:
        raise ValidationError(
            f"O período de investimento não pode exceder {limit} meses"
        )


def tax_rate_for(months: int) -> float:
    for limit, rate in TAX_BRACKETS:
        if months <= limit:
            return rate
    return LONG_TERM_TAX_RATE


def allocate_products(
    products: Sequence[Product],
    invested_amount: float,
    profile_type: Optional[ProfileType],
) -> List[ProductAllocation]:
    """Split the invested amount across products by position.

    Each share is raised to the product's minimum investment; if the floored
    total exceeds the invested amount, every share is scaled by the same ratio.
    The scale-down may leave a share below its minimum again; this single
    floor-then-scale pass is the documented policy.
    Products beyond the length of the profile's distribution table get nothing.
    """
    distribution = get_distribution(profile_type)
    allocations: List[ProductAllocation] = []

    for product, percentage in zip(products, distribution):
        amount = invested_amount * percentage / 100.0
        if amount < product.minimum_investment:
            amount = product.minimum_investment
        allocations.append(ProductAllocation(product, amount))

    total_allocated = sum(a.allocated_amount for a in allocations)
    if total_allocated > invested_amount:
        ratio = invested_amount / total_allocated
        for allocation in allocations:
            allocation.allocated_amount *= ratio

    return allocations


def simulate_product(allocation: ProductAllocation, months: int) -> ProductSimulationResult:
    product = allocation.product
    allocated = allocation.allocated_amount
    monthly_rate = product.expected_return

    gross_return = allocated * math.pow(1 + monthly_rate, months) - allocated
    tax_rate = tax_rate_for(months)
    taxes = gross_return * tax_rate
    net_return = gross_return - taxes
    final_amount = allocated + net_return

    return ProductSimulationResult(
        product_id=product.id,
        product_name=product.name,
        category=product.category,
        risk_level=product.risk_level.value,
        allocated_amount=allocated,
        expected_return=monthly_rate,
        gross_return=gross_return,
        taxes=taxes,
        net_return=net_return,
        final_amount=final_amount,
        details=f"Taxa: {monthly_rate:.2%} | IR: {tax_rate:.2%} | Meses: {months}",
    )


def _products_for_simulation(
    product_ids: Optional[Sequence[int]],
    profile_type: ProfileType,
    products: ProductCatalog,
) -> List[Product]:
    if not product_ids:
        return products.products_by_profile(profile_type)

    selected: List[Product] = []
    for product_id in product_ids:
        product = products.product_by_id(product_id)
        if product is None or not product.is_active:
            logger.warning("Produto %s ignorado na simulacao: inexistente ou inativo", product_id)
            continue
        selected.append(product)
    return selected


def simulate(
    user_id: int,
    invested_amount: float,
    investment_months: int,
    product_ids: Optional[Sequence[int]] = None,
    *,
    profiles: ProfileStore,
    products: ProductCatalog,
    simulations: SimulationStore,
    max_months: int = MAX_INVESTMENT_MONTHS,
) -> SimulationResult:
    logger.info(
        "Iniciando simulacao para o usuario %s: valor %s, meses %s",
        user_id,
        invested_amount,
        investment_months,
    )

    validate_request(invested_amount, investment_months, max_months)
    invested_amount = float(invested_amount)

    profile = profiles.by_user_id(user_id)
    if profile is None:
        raise NotFoundError(f"Perfil não encontrado para o usuário {user_id}")

    selected = _products_for_simulation(product_ids, profile.profile_type, products)
    allocations = allocate_products(selected, invested_amount, profile.profile_type)
    results = [simulate_product(a, investment_months) for a in allocations]

    total_gross = sum(r.gross_return for r in results)
    total_net = sum(r.net_return for r in results)
    total_amount = invested_amount + total_net

    calculated_at = _utcnow()
    record = simulations.add(
        SimulationRecord(
            user_id=user_id,
            profile_type=profile.profile_type.value,
            invested_amount=invested_amount,
            investment_months=investment_months,
            total_return=total_gross,
            net_return=total_net,
            total_amount=total_amount,
            details=dump_details(results, calculated_at),
            simulated_at=calculated_at,
        )
    )

    logger.info(
        "Simulacao concluida para o usuario %s. Simulacao %s com %s produtos",
        user_id,
        record.id,
        len(results),
    )

    return SimulationResult(
        id=record.id,
        user_id=user_id,
        profile_type=record.profile_type,
        invested_amount=invested_amount,
        investment_months=investment_months,
        total_return=total_gross,
        net_return=total_net,
        total_amount=total_amount,
        return_rate=_return_rate(total_net, invested_amount),
        product_simulations=results,
        simulated_at=record.simulated_at,
    )


def get_simulation(
    simulation_id: int, *, simulations: SimulationStore
) -> Optional[SimulationResult]:
    record = simulations.by_id(simulation_id)
    if record is None:
        return None

    details = load_details(record.details)
    return SimulationResult(
        id=record.id,
        user_id=record.user_id,
        profile_type=record.profile_type,
        invested_amount=record.invested_amount,
        investment_months=record.investment_months,
        total_return=record.total_return,
        net_return=record.net_return,
        total_amount=record.total_amount,
        return_rate=_return_rate(record.net_return, record.invested_amount),
        product_simulations=list(details.product_simulations),
        simulated_at=record.simulated_at,
    )


def get_history(user_id: int, *, simulations: SimulationStore) -> List[SimulationHistoryItem]:
    records = sorted(
        simulations.by_user_id(user_id),
        key=lambda r: (r.simulated_at or datetime.min, r.id or 0),
        reverse=True,
    )
    return [
        SimulationHistoryItem(
            id=r.id,
            invested_amount=r.invested_amount,
            investment_months=r.investment_months,
            total_amount=r.total_amount,
            return_rate=_return_rate(r.net_return, r.invested_amount),
            simulated_at=r.simulated_at,
        )
        for r in records
    ]


def serialize_simulation(result: SimulationResult) -> Dict[str, object]:
    return {
        "id": result.id,
        "user_id": result.user_id,
        "profile_type": result.profile_type,
        "invested_amount": round(result.invested_amount, 2),
        "investment_months": result.investment_months,
        "total_return": round(result.total_return, 2),
        "net_return": round(result.net_return, 2),
        "total_amount": round(result.total_amount, 2),
        "return_rate": round(result.return_rate, 2),
        "product_simulations": [ps.model_dump() for ps in result.product_simulations],
        "simulated_at": result.simulated_at,
    }


def serialize_history_item(item: SimulationHistoryItem) -> Dict[str, object]:
    return {
        "id": item.id,
        "invested_amount": round(item.invested_amount, 2),
        "investment_months": item.investment_months,
        "total_amount": round(item.total_amount, 2),
        "return_rate": round(item.return_rate, 2),
        "simulated_at": item.simulated_at,
    }
