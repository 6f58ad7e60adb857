"""Concurrent fetch of independent monthly series."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import MappingProxyType

from finplan.models.entities import KpiArea, Scenario
from finplan.repositories.records import EntityRecord, KpiRef
from finplan.repositories.series_repository import SeriesRepository
from finplan.services.aggregation import leaf_entities, series_for_entity
from finplan.services.series import MonthSeries, normalize_series

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SeriesKey:
    year: int
    entity_code: str
    kpi: KpiRef
    scenario: Scenario


def series_keys(
    *,
    year: int,
    entity_codes: Iterable[str],
    kpi: KpiRef,
    scenarios: Iterable[Scenario],
) -> list[SeriesKey]:
    return [
        SeriesKey(year=year, entity_code=code, kpi=kpi, scenario=scenario)
        for scenario in scenarios
        for code in entity_codes
    ]


def _fetch(repository: SeriesRepository, key: SeriesKey) -> tuple[tuple[int, float], ...]:
    rows = repository.get_monthly_facts(
        key.year,
        key.entity_code,
        KpiArea(key.kpi.area),
        key.kpi.code,
        key.scenario,
    )
    return tuple((int(month), float(value)) for month, value in rows)


def load_fact_rows(
    repository: SeriesRepository,
    keys: Iterable[SeriesKey],
    *,
    max_workers: int = 1,
) -> Mapping[SeriesKey, tuple[tuple[int, float], ...]]:
    """Fetch the stored rows of every key once and return a read-only snapshot.

    Fetches have no ordering dependency; with ``max_workers > 1`` they fan out over a
    thread pool and are joined before returning.
    """

    unique_keys = list(dict.fromkeys(keys))
    logger.debug("Loading %d series with %d worker(s).", len(unique_keys), max_workers)
    if max_workers <= 1 or len(unique_keys) <= 1:
        results = [_fetch(repository, key) for key in unique_keys]
    else:
        with ThreadPoolExecutor(
            max_workers=min(max_workers, len(unique_keys)),
            thread_name_prefix="series-fetch",
        ) as executor:
            results = list(executor.map(lambda key: _fetch(repository, key), unique_keys))
    return MappingProxyType(dict(zip(unique_keys, results)))


def load_series_map(
    repository: SeriesRepository,
    keys: Iterable[SeriesKey],
    *,
    max_workers: int = 1,
) -> Mapping[SeriesKey, MonthSeries]:
    """Like ``load_fact_rows`` with every result zero-filled to a ``MonthSeries``."""

    rows = load_fact_rows(repository, keys, max_workers=max_workers)
    return MappingProxyType({key: normalize_series(value) for key, value in rows.items()})


def per_entity(
    series_map: Mapping[SeriesKey, MonthSeries],
    *,
    year: int,
    entity_codes: Iterable[str],
    kpi: KpiRef,
    scenario: Scenario,
) -> dict[str, MonthSeries]:
    """Slice the snapshot into ``entity_code -> series`` for one KPI and scenario."""

    return {
        code: series_map.get(
            SeriesKey(year=year, entity_code=code, kpi=kpi, scenario=scenario),
            MonthSeries.zeros(),
        )
        for code in entity_codes
    }


class SeriesView:
    """Entity-aware lookup over a loaded snapshot.

    Leaf entities read their stored series; aggregate entities are always summed from
    the leaves.
    """

    def __init__(
        self,
        series_map: Mapping[SeriesKey, MonthSeries],
        *,
        year: int,
        entities: Sequence[EntityRecord],
    ) -> None:
        self.series_map = series_map
        self.year = year
        self.entities = list(entities)

    def get(self, entity: EntityRecord, kpi: KpiRef, scenario: Scenario) -> MonthSeries:
        codes = [leaf.code for leaf in leaf_entities(self.entities)]
        if entity.code not in codes:
            codes.append(entity.code)
        stored = per_entity(
            self.series_map,
            year=self.year,
            entity_codes=codes,
            kpi=kpi,
            scenario=scenario,
        )
        return series_for_entity(entity, stored, self.entities)
