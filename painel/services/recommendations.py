from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from painel.services.allocations import AllocationTemplate, get_allocation_template
from painel.services.domain import Product, ProfileType, RiskLevel
from painel.services.errors import NotFoundError
from painel.services.stores import ProductCatalog, ProfileStore

logger = logging.getLogger(__name__)


RECOMMENDATION_LIMIT = 10
DEFAULT_SUGGESTED_AMOUNT = 10000.0

# Pontos de adequação por perfil x nível de risco
ADEQUACY_MATRIX: Mapping[ProfileType, Mapping[RiskLevel, int]] = {
    ProfileType.CONSERVATIVE: {
        RiskLevel.LOW: 10,
        RiskLevel.MEDIUM: 5,
        RiskLevel.MEDIUM_HIGH: -10,
        RiskLevel.HIGH: -10,
    },
    ProfileType.MODERATE: {
        RiskLevel.LOW: 8,
        RiskLevel.MEDIUM: 10,
        RiskLevel.MEDIUM_HIGH: 0,
        RiskLevel.HIGH: 3,
    },
    ProfileType.AGGRESSIVE: {
        RiskLevel.LOW: 2,
        RiskLevel.MEDIUM: 7,
        RiskLevel.MEDIUM_HIGH: 0,
        RiskLevel.HIGH: 10,
    },
}

HIGH_LIQUIDITY_DAYS = 7
HIGH_LIQUIDITY_BONUS = 5
SUITABILITY_CEILING = 100


@dataclass(frozen=True)
class RankedProduct:
    product: Product
    adequacy_score: int

    @property
    def suitability_rank(self) -> int:
        # Menor valor = mais adequado
        return SUITABILITY_CEILING - self.adequacy_score


@dataclass(frozen=True)
class RecommendationResult:
    user_id: Optional[int]
    profile_type: str
    score: int
    products: Sequence[RankedProduct]
    allocation: AllocationTemplate
    suggested_amount: float


def adequacy_score(product: Product, profile_type: ProfileType) -> int:
    score = ADEQUACY_MATRIX[profile_type][product.risk_level]
    if (
        profile_type is ProfileType.CONSERVATIVE
        and product.liquidity_days <= HIGH_LIQUIDITY_DAYS
    ):
        score += HIGH_LIQUIDITY_BONUS
    return score


def rank_products(
    products: Sequence[Product], profile_type: ProfileType
) -> List[RankedProduct]:
    ranked = [RankedProduct(p, adequacy_score(p, profile_type)) for p in products]
    ranked.sort(key=lambda r: (r.suitability_rank, -r.product.expected_return))
    return ranked


def recommend_for_user(
    user_id: int,
    *,
    profiles: ProfileStore,
    products: ProductCatalog,
    limit: int = RECOMMENDATION_LIMIT,
    suggested_amount: float = DEFAULT_SUGGESTED_AMOUNT,
) -> RecommendationResult:
    logger.info("Gerando recomendacoes para o usuario %s", user_id)

    profile = profiles.by_user_id(user_id)
    if profile is None:
        raise NotFoundError(f"Perfil não encontrado para o usuário {user_id}")

    candidates = products.products_by_profile(profile.profile_type)
    ranked = rank_products(candidates, profile.profile_type)

    logger.info(
        "Geradas %s recomendacoes para o usuario %s com perfil %s",
        len(ranked),
        user_id,
        profile.profile_type.value,
    )

    return RecommendationResult(
        user_id=user_id,
        profile_type=profile.profile_type.value,
        score=profile.score,
        products=ranked[: max(limit, 0)],
        allocation=get_allocation_template(profile.profile_type),
        suggested_amount=suggested_amount,
    )


def recommend_for_profile_type(
    profile_type: str,
    available_amount: float,
    *,
    products: ProductCatalog,
    limit: int = RECOMMENDATION_LIMIT,
) -> RecommendationResult:
    logger.info(
        "Gerando recomendacoes para o perfil %s com valor %.2f",
        profile_type,
        available_amount,
    )

    parsed = ProfileType.parse(profile_type)
    ranked: List[RankedProduct] = []
    if parsed is None:
        logger.warning("Perfil %r desconhecido; sem produtos elegiveis", profile_type)
    else:
        affordable = [
            p
            for p in products.products_by_profile(parsed)
            if p.minimum_investment <= available_amount
        ]
        # Ordenação estável: adequação desempata produtos com o mesmo mínimo
        ranked = rank_products(affordable, parsed)
        ranked.sort(key=lambda r: r.product.minimum_investment)

    return RecommendationResult(
        user_id=None,
        profile_type=parsed.value if parsed else str(profile_type),
        score=0,
        products=ranked[: max(limit, 0)],
        allocation=get_allocation_template(parsed),
        suggested_amount=available_amount,
    )


def products_for_profile(
    profile_type: str, *, products: ProductCatalog
) -> List[Product]:
    parsed = ProfileType.parse(profile_type)
    if parsed is None:
        return []
    return products.products_by_profile(parsed)


def serialize_product(product: Product) -> Dict[str, object]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "risk_level": product.risk_level.value,
        "minimum_investment": product.minimum_investment,
        "liquidity_days": product.liquidity_days,
        "target_profiles": [p.value for p in ProfileType if p in product.target_profiles],
        "administration_fee": product.administration_fee,
        "expected_return": product.expected_return,
        "issuer": product.issuer,
    }


def serialize_recommendation(result: RecommendationResult) -> Dict[str, object]:
    products_payload = []
    for ranked in result.products:
        item = serialize_product(ranked.product)
        item["adequacy_score"] = ranked.adequacy_score
        products_payload.append(item)

    return {
        "user_id": result.user_id,
        "profile_type": result.profile_type,
        "score": result.score,
        "recommended_products": products_payload,
        "allocation": result.allocation.as_dict(result.suggested_amount),
    }
