"""Side-by-side entity comparison and plan-variance alerts."""

from __future__ import annotations

from finplan.core.errors import InvalidMonthRange
from finplan.models.entities import Scenario
from finplan.repositories.records import AggregateEntity, EntityRecord, KpiRef
from finplan.repositories.series_repository import SeriesRepository
from finplan.services.aggregation import leaf_entities
from finplan.services.kpis import EBIT, HEADCOUNT, REVENUE
from finplan.services.metrics import margin, round_half_up, variance
from finplan.services.series import BlendPolicy, MonthSeries, blend, normalize_series
from finplan.services.series_loader import (
    SeriesKey,
    SeriesView,
    load_fact_rows,
    load_series_map,
    series_keys,
)

COMPARED_SCENARIOS = (Scenario.PLAN, Scenario.IST, Scenario.FC)
ALERT_SCENARIOS = (Scenario.IST, Scenario.FC)


def validate_month_range(month_from: int, month_to: int) -> tuple[int, int]:
    if not (1 <= month_from <= month_to <= 12):
        raise InvalidMonthRange(month_from, month_to)
    return month_from, month_to


class ComparisonAssembler:
    """Comparison screen and variance alert list.

    The comparison screen blends actuals and forecasts by presence (actual where it is
    positive, forecast otherwise) rather than by cutoff month.
    """

    blend_policy = BlendPolicy.PRESENCE

    def __init__(self, repository: SeriesRepository, *, max_workers: int = 1) -> None:
        self.repository = repository
        self.max_workers = max_workers

    def _displayed(self, view: SeriesView, entity: EntityRecord, kpi: KpiRef) -> MonthSeries:
        blended = blend(
            view.get(entity, kpi, Scenario.IST),
            view.get(entity, kpi, Scenario.FC),
            policy=self.blend_policy,
        )
        if blended.has_positive():
            return blended
        return view.get(entity, kpi, Scenario.PLAN)

    @staticmethod
    def _positive_average(series: MonthSeries, month_from: int, month_to: int) -> float:
        values = [series[month] for month in range(month_from, month_to + 1) if series[month] > 0]
        return sum(values) / len(values) if values else 0.0

    def assemble_comparison(
        self,
        entity_codes: list[str],
        year: int,
        month_from: int = 1,
        month_to: int = 12,
    ) -> dict[str, object]:
        month_from, month_to = validate_month_range(month_from, month_to)

        entities = self.repository.get_entities()
        by_code = {entity.code: entity for entity in entities}
        selected = [by_code[code] for code in dict.fromkeys(entity_codes) if code in by_code]
        if not selected:
            return {"year": year, "month_from": month_from, "month_to": month_to, "entities": []}

        if any(isinstance(entity, AggregateEntity) for entity in selected):
            codes = [leaf.code for leaf in leaf_entities(entities)]
        else:
            codes = [entity.code for entity in selected]
        keys: list[SeriesKey] = []
        for kpi in (REVENUE, EBIT, HEADCOUNT):
            keys.extend(series_keys(year=year, entity_codes=codes, kpi=kpi, scenarios=COMPARED_SCENARIOS))
        view = SeriesView(
            load_series_map(self.repository, keys, max_workers=self.max_workers),
            year=year,
            entities=entities,
        )

        rows = []
        for entity in selected:
            revenue = self._displayed(view, entity, REVENUE)
            ebit = self._displayed(view, entity, EBIT)
            headcount = self._displayed(view, entity, HEADCOUNT)
            revenue_sum = revenue.total(month_from, month_to)
            ebit_sum = ebit.total(month_from, month_to)
            rows.append(
                {
                    "code": entity.code,
                    "name": entity.display_name,
                    "revenue": revenue_sum,
                    "ebit": ebit_sum,
                    "headcount": round_half_up(self._positive_average(headcount, month_from, month_to)),
                    "margin": margin(ebit_sum, revenue_sum),
                    "monthly": {
                        "revenue": revenue.to_list(),
                        "ebit": ebit.to_list(),
                        "headcount": headcount.to_list(),
                    },
                }
            )
        return {"year": year, "month_from": month_from, "month_to": month_to, "entities": rows}

    def variance_alerts(self, year: int, *, threshold_percent: float, limit: int) -> dict[str, object]:
        """Stored actual/forecast months deviating from plan by more than the threshold."""

        entities = leaf_entities(self.repository.get_entities())
        kpis = self.repository.get_kpis()
        codes = [entity.code for entity in entities]

        keys: list[SeriesKey] = []
        for kpi in kpis:
            keys.extend(
                series_keys(
                    year=year,
                    entity_codes=codes,
                    kpi=kpi.ref,
                    scenarios=(Scenario.PLAN, *ALERT_SCENARIOS),
                )
            )
        rows = load_fact_rows(self.repository, keys, max_workers=self.max_workers)

        alerts = []
        for kpi in kpis:
            for entity in entities:
                plan = normalize_series(
                    rows.get(SeriesKey(year=year, entity_code=entity.code, kpi=kpi.ref, scenario=Scenario.PLAN), ())
                )
                for scenario in ALERT_SCENARIOS:
                    key = SeriesKey(year=year, entity_code=entity.code, kpi=kpi.ref, scenario=scenario)
                    for month, actual in rows.get(key, ()):
                        if month < 1 or month > 12:
                            continue
                        delta = variance(actual, plan[month])
                        if abs(delta.pct) <= threshold_percent:
                            continue
                        alerts.append(
                            {
                                "entity_code": entity.code,
                                "entity_name": entity.display_name,
                                "kpi_area": kpi.area.value,
                                "kpi_code": kpi.code,
                                "kpi_name": kpi.display_name,
                                "scenario": scenario.value,
                                "month": month,
                                "actual": actual,
                                "plan": plan[month],
                                "variance_percent": delta.pct,
                            }
                        )

        alerts.sort(key=lambda row: abs(row["variance_percent"]), reverse=True)
        alerts = alerts[:limit]
        return {"year": year, "threshold_percent": threshold_percent, "count": len(alerts), "alerts": alerts}
