"""Single-entity KPI dashboard."""

from __future__ import annotations

from finplan.models.entities import Scenario
from finplan.repositories.records import EntityRecord, KpiRef, LeafEntity
from finplan.repositories.series_repository import SeriesRepository
from finplan.services.aggregation import leaf_entities
from finplan.services.kpis import EBIT, HEADCOUNT, REVENUE
from finplan.services.metrics import (
    margin,
    monthly_margin,
    monthly_revenue_per_head,
    revenue_per_head,
    variance,
    yoy_change,
)
from finplan.services.series import (
    MONTHS,
    BlendPolicy,
    MonthSeries,
    blend,
    cumulative,
    validate_cutoff_month,
)
from finplan.services.series_loader import SeriesView, load_series_map, series_keys

FLOW_SCENARIOS = (Scenario.PLAN, Scenario.IST, Scenario.FC, Scenario.PRIOR_YEAR_KUM)
STOCK_SCENARIOS = (Scenario.PLAN, Scenario.IST, Scenario.FC)


def _monthly_pairs(plan: MonthSeries, actual: MonthSeries) -> list[dict[str, float]]:
    return [{"month": month, "plan": plan[month], "actual": actual[month]} for month in MONTHS]


class DashboardAssembler:
    """Plan vs. actual/forecast KPI cards for one entity and its leaf breakdown.

    Annual ratios (margin, revenue per head) are computed from summed or averaged
    annual figures; monthly ratios from the month pairs. The two are never mixed.
    """

    blend_policy = BlendPolicy.CUTOFF

    def __init__(self, repository: SeriesRepository, *, max_workers: int = 1) -> None:
        self.repository = repository
        self.max_workers = max_workers

    def _resolve_entity(self, entity_code: str, entities: list[EntityRecord]) -> EntityRecord:
        for entity in entities:
            if entity.code == entity_code:
                return entity
        # Unknown codes read as an entity without data.
        return LeafEntity(code=entity_code, display_name=entity_code)

    def _blended(self, view: SeriesView, entity: EntityRecord, kpi: KpiRef, cutoff_month: int) -> MonthSeries:
        return blend(
            view.get(entity, kpi, Scenario.IST),
            view.get(entity, kpi, Scenario.FC),
            policy=self.blend_policy,
            cutoff_month=cutoff_month,
        )

    @staticmethod
    def _flow_card(plan: MonthSeries, actual: MonthSeries) -> dict[str, object]:
        plan_total = plan.total()
        actual_total = actual.total()
        delta = variance(actual_total, plan_total)
        return {
            "plan": plan_total,
            "actual": actual_total,
            "variance": delta.abs,
            "variance_percent": delta.pct,
            "monthly": _monthly_pairs(plan, actual),
            "cumulative": {
                "plan": cumulative(plan).to_list(),
                "actual": cumulative(actual).to_list(),
            },
        }

    def _entity_breakdown(self, view: SeriesView, leaves: list[LeafEntity], cutoff_month: int) -> list[dict[str, object]]:
        rows = []
        for entity in leaves:
            revenue_total = self._blended(view, entity, REVENUE, cutoff_month).total()
            ebit_total = self._blended(view, entity, EBIT, cutoff_month).total()
            headcount_avg = self._blended(view, entity, HEADCOUNT, cutoff_month).mean()
            rows.append(
                {
                    "code": entity.code,
                    "name": entity.display_name,
                    "revenue": revenue_total,
                    "ebit": ebit_total,
                    "ebit_margin": margin(ebit_total, revenue_total),
                    "headcount": headcount_avg,
                    "revenue_per_head": revenue_per_head(revenue_total, headcount_avg),
                }
            )
        rows.sort(key=lambda row: row["revenue"], reverse=True)
        return rows

    def assemble_dashboard(self, entity_code: str, year: int, cutoff_month: int) -> dict[str, object]:
        cutoff_month = validate_cutoff_month(cutoff_month)

        entities = self.repository.get_entities()
        entity = self._resolve_entity(entity_code, entities)
        leaves = leaf_entities(entities)
        codes = [leaf.code for leaf in leaves]
        if isinstance(entity, LeafEntity) and entity.code not in codes:
            codes.append(entity.code)

        keys = [
            *series_keys(year=year, entity_codes=codes, kpi=REVENUE, scenarios=FLOW_SCENARIOS),
            *series_keys(year=year, entity_codes=codes, kpi=EBIT, scenarios=FLOW_SCENARIOS),
            *series_keys(year=year, entity_codes=codes, kpi=HEADCOUNT, scenarios=STOCK_SCENARIOS),
        ]
        view = SeriesView(
            load_series_map(self.repository, keys, max_workers=self.max_workers),
            year=year,
            entities=entities,
        )

        revenue_plan = view.get(entity, REVENUE, Scenario.PLAN)
        revenue_actual = self._blended(view, entity, REVENUE, cutoff_month)
        ebit_plan = view.get(entity, EBIT, Scenario.PLAN)
        ebit_actual = self._blended(view, entity, EBIT, cutoff_month)
        headcount_plan = view.get(entity, HEADCOUNT, Scenario.PLAN)
        headcount_actual = self._blended(view, entity, HEADCOUNT, cutoff_month)

        revenue_card = self._flow_card(revenue_plan, revenue_actual)
        ebit_card = self._flow_card(ebit_plan, ebit_actual)

        # Headcount is a stock: annual figure is the 12-month mean, not the sum.
        headcount_plan_avg = headcount_plan.mean()
        headcount_actual_avg = headcount_actual.mean()
        headcount_delta = variance(headcount_actual_avg, headcount_plan_avg)

        monthly_margin_plan = monthly_margin(ebit_plan, revenue_plan)
        monthly_margin_actual = monthly_margin(ebit_actual, revenue_actual)
        cum_margin_plan = monthly_margin(cumulative(ebit_plan), cumulative(revenue_plan))
        cum_margin_actual = monthly_margin(cumulative(ebit_actual), cumulative(revenue_actual))

        prior_revenue = view.get(entity, REVENUE, Scenario.PRIOR_YEAR_KUM)[12]
        prior_ebit = view.get(entity, EBIT, Scenario.PRIOR_YEAR_KUM)[12]

        return {
            "entity_code": entity.code,
            "entity_name": entity.display_name,
            "year": year,
            "cutoff_month": cutoff_month,
            "kpis": {
                "revenue": revenue_card,
                "ebit": ebit_card,
                "ebit_margin": {
                    "plan": margin(ebit_plan.total(), revenue_plan.total()),
                    "actual": margin(ebit_actual.total(), revenue_actual.total()),
                    "monthly": _monthly_pairs(monthly_margin_plan, monthly_margin_actual),
                    "cumulative": {
                        "plan": cum_margin_plan.to_list(),
                        "actual": cum_margin_actual.to_list(),
                    },
                },
                "headcount": {
                    "plan": headcount_plan_avg,
                    "actual": headcount_actual_avg,
                    "variance": headcount_delta.abs,
                    "variance_percent": headcount_delta.pct,
                    "monthly": _monthly_pairs(headcount_plan, headcount_actual),
                },
                "revenue_per_head": {
                    "plan": revenue_per_head(revenue_plan.total(), headcount_plan_avg),
                    "actual": revenue_per_head(revenue_actual.total(), headcount_actual_avg),
                    "monthly": _monthly_pairs(
                        monthly_revenue_per_head(revenue_plan, headcount_plan),
                        monthly_revenue_per_head(revenue_actual, headcount_actual),
                    ),
                },
                "prior_year_comparison": {
                    "revenue": {
                        "current": revenue_actual.total(),
                        "prior_year": prior_revenue,
                        "change_percent": yoy_change(revenue_actual.total(), prior_revenue),
                    },
                    "ebit": {
                        "current": ebit_actual.total(),
                        "prior_year": prior_ebit,
                        "change_percent": yoy_change(ebit_actual.total(), prior_ebit),
                    },
                },
            },
            "entities": self._entity_breakdown(view, leaves, cutoff_month),
        }
