from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Union

from painel.services.domain import Product, SimulationRecord
from painel.services.errors import UnexpectedError, ValidationError
from painel.services.simulation_details import ProductSimulationResult, load_details
from painel.services.stores import ProductCatalog, SimulationStore

logger = logging.getLogger(__name__)


DEFAULT_WINDOW_DAYS = 30
DEFAULT_TOP_COUNT = 10


@dataclass(frozen=True)
class DailyProductStat:
    product_id: int
    product_name: str
    category: str
    risk_level: str
    date: date
    simulation_count: int
    average_final_amount: float
    total_invested_amount: float
    min_final_amount: float
    max_final_amount: float
    average_return_rate: float


@dataclass(frozen=True)
class StatsResult:
    start_date: datetime
    end_date: datetime
    total_simulations: int
    unique_products: int
    daily_stats: Sequence[DailyProductStat]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(value: Union[date, datetime]) -> datetime:
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _end_of_range(value: Union[date, datetime]) -> datetime:
    # Data sem horário cobre o dia inteiro
    end = _naive_utc(value)
    if not isinstance(value, datetime) or end.time() == time.min:
        return datetime.combine(end.date(), time.max)
    return end


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _entry_return_rate(entry: ProductSimulationResult) -> float:
    if entry.allocated_amount > 0:
        return entry.net_return / entry.allocated_amount * 100
    return 0.0


def _extract_entries(record: SimulationRecord) -> List[ProductSimulationResult]:
    try:
        return list(load_details(record.details).product_simulations)
    except UnexpectedError:
        logger.warning(
            "Detalhes ilegiveis na simulacao %s; registro ignorado nas estatisticas",
            record.id,
            exc_info=True,
        )
        return []


def _build_stat(
    product_id: int,
    day: date,
    entries: Sequence[ProductSimulationResult],
    catalog: Mapping[int, Product],
) -> DailyProductStat:
    product = catalog.get(product_id)
    first = entries[0]
    finals = [e.final_amount for e in entries]

    return DailyProductStat(
        product_id=product_id,
        product_name=product.name if product else first.product_name,
        category=product.category if product else first.category,
        risk_level=product.risk_level.value if product else first.risk_level,
        date=day,
        simulation_count=len(entries),
        average_final_amount=round(_mean(finals), 2),
        total_invested_amount=round(sum(e.allocated_amount for e in entries), 2),
        min_final_amount=round(min(finals), 2),
        max_final_amount=round(max(finals), 2),
        average_return_rate=round(_mean([_entry_return_rate(e) for e in entries]), 2),
    )


def _category_of(
    product_id: int, entries: Sequence[ProductSimulationResult], catalog: Mapping[int, Product]
) -> str:
    product = catalog.get(product_id)
    return product.category if product else entries[0].category


def aggregate_daily(
    records: Sequence[SimulationRecord],
    catalog: Mapping[int, Product],
    product_id: Optional[int] = None,
    category: Optional[str] = None,
) -> List[DailyProductStat]:
    by_day: Dict[date, List[SimulationRecord]] = defaultdict(list)
    for record in records:
        if record.simulated_at is None:
            continue
        by_day[record.simulated_at.date()].append(record)

    stats: List[DailyProductStat] = []
    for day in sorted(by_day):
        groups: "OrderedDict[int, List[ProductSimulationResult]]" = OrderedDict()
        for record in by_day[day]:
            for entry in _extract_entries(record):
                groups.setdefault(entry.product_id, []).append(entry)

        for pid, entries in groups.items():
            if product_id is not None and pid != product_id:
                continue
            if category and _category_of(pid, entries, catalog) != category:
                continue
            stats.append(_build_stat(pid, day, entries, catalog))
    return stats


def daily_stats(
    start_date: Optional[Union[date, datetime]] = None,
    end_date: Optional[Union[date, datetime]] = None,
    product_id: Optional[int] = None,
    category: Optional[str] = None,
    *,
    simulations: SimulationStore,
    products: ProductCatalog,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> StatsResult:
    now = _utcnow()
    start = _naive_utc(start_date) if start_date else now - timedelta(days=window_days)
    end = _end_of_range(end_date) if end_date else now
    if start > end:
        raise ValidationError("A data inicial deve ser anterior à data final")

    logger.info("Gerando estatisticas diarias de produtos de %s a %s", start, end)

    records = simulations.by_date_range(start, end)
    catalog = {p.id: p for p in products.active_products()}
    stats = aggregate_daily(records, catalog, product_id=product_id, category=category)

    return StatsResult(
        start_date=start,
        end_date=end,
        total_simulations=sum(s.simulation_count for s in stats),
        unique_products=len({s.product_id for s in stats}),
        daily_stats=stats,
    )


def collapse_by_product(stats: Sequence[DailyProductStat]) -> List[DailyProductStat]:
    grouped: "OrderedDict[int, List[DailyProductStat]]" = OrderedDict()
    for stat in stats:
        grouped.setdefault(stat.product_id, []).append(stat)

    collapsed: List[DailyProductStat] = []
    for pid, items in grouped.items():
        first = items[0]
        collapsed.append(
            DailyProductStat(
                product_id=pid,
                product_name=first.product_name,
                category=first.category,
                risk_level=first.risk_level,
                date=max(s.date for s in items),  # último dia com dados
                simulation_count=sum(s.simulation_count for s in items),
                average_final_amount=round(_mean([s.average_final_amount for s in items]), 2),
                total_invested_amount=round(sum(s.total_invested_amount for s in items), 2),
                min_final_amount=min(s.min_final_amount for s in items),
                max_final_amount=max(s.max_final_amount for s in items),
                average_return_rate=round(_mean([s.average_return_rate for s in items]), 2),
            )
        )
    return collapsed


def top_products(
    start_date: Optional[Union[date, datetime]] = None,
    end_date: Optional[Union[date, datetime]] = None,
    top_count: int = DEFAULT_TOP_COUNT,
    *,
    simulations: SimulationStore,
    products: ProductCatalog,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> List[DailyProductStat]:
    if top_count <= 0:
        return []

    result = daily_stats(
        start_date,
        end_date,
        simulations=simulations,
        products=products,
        window_days=window_days,
    )
    ranked = collapse_by_product(result.daily_stats)
    ranked.sort(key=lambda s: (-s.simulation_count, -s.average_final_amount))
    return ranked[:top_count]


def serialize_stat(stat: DailyProductStat) -> Dict[str, object]:
    return {
        "product_id": stat.product_id,
        "product_name": stat.product_name,
        "category": stat.category,
        "risk_level": stat.risk_level,
        "date": stat.date.isoformat(),
        "simulation_count": stat.simulation_count,
        "average_final_amount": stat.average_final_amount,
        "total_invested_amount": stat.total_invested_amount,
        "min_final_amount": stat.min_final_amount,
        "max_final_amount": stat.max_final_amount,
        "average_return_rate": stat.average_return_rate,
    }


def serialize_stats(result: StatsResult) -> Dict[str, object]:
    return {
        "start_date": result.start_date,
        "end_date": result.end_date,
        "total_simulations": result.total_simulations,
        "unique_products": result.unique_products,
        "daily_stats": [serialize_stat(s) for s in result.daily_stats],
    }
