from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from painel.services.domain import ProfileType


@dataclass(frozen=True)
class AllocationTemplate:
    conservative_pct: int
    moderate_pct: int
    aggressive_pct: int
    description: str

    def as_dict(self, suggested_amount: float) -> Dict[str, object]:
        return {
            "conservative_percentage": self.conservative_pct,
            "moderate_percentage": self.moderate_pct,
            "aggressive_percentage": self.aggressive_pct,
            "suggested_amount": round(float(suggested_amount), 2),
            "description": self.description,
        }


def _checked(template: AllocationTemplate) -> AllocationTemplate:
    total = template.conservative_pct + template.moderate_pct + template.aggressive_pct
    if total != 100:
        raise ValueError("Percentuais da alocação sugerida devem somar 100.")
    return template


ALLOCATION_TEMPLATES: Dict[ProfileType, AllocationTemplate] = {
    ProfileType.CONSERVATIVE: _checked(
        AllocationTemplate(
            conservative_pct=70,
            moderate_pct=25,
            aggressive_pct=5,
            description="Foco em preservação de capital com exposição mínima a riscos. Produtos de renda fixa e tesouro direto.",
        )
    ),
    ProfileType.MODERATE: _checked(
        AllocationTemplate(
            conservative_pct=40,
            moderate_pct=45,
            aggressive_pct=15,
            description="Equilíbrio entre segurança e potencial de retorno. Mistura de renda fixa e fundos balanceados.",
        )
    ),
    ProfileType.AGGRESSIVE: _checked(
        AllocationTemplate(
            conservative_pct=15,
            moderate_pct=35,
            aggressive_pct=50,
            description="Foco em maximização de retorno com tolerância a volatilidade. Ênfase em ações e fundos multimercado.",
        )
    ),
}

DEFAULT_TEMPLATE = _checked(
    AllocationTemplate(
        conservative_pct=100,
        moderate_pct=0,
        aggressive_pct=0,
        description="Perfil conservador padrão com foco total em segurança.",
    )
)


# Distribuição percentual por posição do produto na simulação
DISTRIBUTION_TABLES: Dict[ProfileType, Sequence[float]] = {
    ProfileType.CONSERVATIVE: (40.0, 30.0, 20.0, 10.0),
    ProfileType.MODERATE: (30.0, 25.0, 20.0, 15.0, 10.0),
    ProfileType.AGGRESSIVE: (25.0, 20.0, 18.0, 15.0, 12.0, 10.0),
}

DEFAULT_DISTRIBUTION: Sequence[float] = (100.0,)


def get_allocation_template(profile_type: Optional[ProfileType]) -> AllocationTemplate:
    if profile_type is None:
        return DEFAULT_TEMPLATE
    return ALLOCATION_TEMPLATES.get(profile_type, DEFAULT_TEMPLATE)


def get_distribution(profile_type: Optional[ProfileType]) -> Sequence[float]:
    if profile_type is None:
        return DEFAULT_DISTRIBUTION
    return DISTRIBUTION_TABLES.get(profile_type, DEFAULT_DISTRIBUTION)
