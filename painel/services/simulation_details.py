"""Schema of the per-product detail blob stored with every simulation.

The simulation engine writes it and both simulation retrieval and the stats
engine read it back, so every reader goes through :func:`load_details`.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from painel.services.errors import UnexpectedError


DETAILS_SCHEMA_VERSION = 1
SUPPORTED_SCHEMA_VERSIONS = frozenset({DETAILS_SCHEMA_VERSION})


class ProductSimulationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    product_name: str
    category: str
    risk_level: str
    allocated_amount: float
    expected_return: float
    gross_return: float
    taxes: float
    net_return: float
    final_amount: float
    details: str = ""


class SimulationDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_version: int = DETAILS_SCHEMA_VERSION
    calculated_at: datetime
    product_simulations: List[ProductSimulationResult] = Field(default_factory=list)


def dump_details(
    results: Sequence[ProductSimulationResult], calculated_at: datetime
) -> str:
    payload = SimulationDetails(
        calculated_at=calculated_at, product_simulations=list(results)
    )
    return payload.model_dump_json()


def load_details(raw: str | bytes | None) -> SimulationDetails:
    if not raw:
        raise UnexpectedError("Detalhes da simulação ausentes")
    try:
        details = SimulationDetails.model_validate_json(raw)
    except SchemaError as exc:
        raise UnexpectedError("Detalhes da simulação ilegíveis") from exc
    if details.schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise UnexpectedError(
            f"Versão de detalhes não suportada: {details.schema_version}"
        )
    return details
