"""Workbook sheet assembly: per-entity lines plus group chart projections."""

from __future__ import annotations

from dataclasses import dataclass

from finplan.models.entities import KpiArea, Scenario
from finplan.repositories.records import AggregateEntity, EntityRecord, KpiRef
from finplan.repositories.series_repository import SeriesRepository
from finplan.services.aggregation import leaf_entities
from finplan.services.kpis import (
    HEADCOUNT_ALLOCATION_RELEVANT,
    HEADCOUNT_EXCL_ALLOCATION,
    HEADCOUNT_EXCL_ALLOCATION_DE,
    PRIMARY_KPI_BY_AREA,
)
from finplan.services.series import (
    MONTH_LABELS,
    MONTHS,
    BlendPolicy,
    MonthSeries,
    blend,
    cumulative,
    validate_cutoff_month,
)
from finplan.services.series_loader import SeriesKey, SeriesView, load_series_map, series_keys

BLENDED_SCENARIOS = (Scenario.IST, Scenario.FC)


@dataclass(frozen=True, slots=True)
class SheetLayout:
    kpi: KpiRef
    plan_label: str
    actual_forecast_label: str
    scenarios: tuple[Scenario, ...]
    # (label, kpi) pairs shown as blended actual/forecast lines below the main lines.
    sub_kpis: tuple[tuple[str, KpiRef], ...] = ()
    show_prior_year: bool = False


SHEET_LAYOUTS: dict[KpiArea, SheetLayout] = {
    KpiArea.REVENUE: SheetLayout(
        kpi=PRIMARY_KPI_BY_AREA[KpiArea.REVENUE],
        plan_label="Plan Revenue",
        actual_forecast_label="Actual/Forecast Revenue",
        scenarios=(Scenario.PLAN, Scenario.IST, Scenario.FC, Scenario.PRIOR_YEAR_KUM),
    ),
    KpiArea.PROFIT: SheetLayout(
        kpi=PRIMARY_KPI_BY_AREA[KpiArea.PROFIT],
        plan_label="Plan EBIT",
        actual_forecast_label="Actual/Forecast EBIT",
        scenarios=(Scenario.PLAN, Scenario.IST, Scenario.FC, Scenario.PRIOR_YEAR_KUM),
    ),
    KpiArea.HEADCOUNT: SheetLayout(
        kpi=PRIMARY_KPI_BY_AREA[KpiArea.HEADCOUNT],
        plan_label="Plan Headcount",
        actual_forecast_label="Actual/Forecast Headcount",
        scenarios=(
            Scenario.PLAN,
            Scenario.IST,
            Scenario.FC,
            Scenario.PRIOR_YEAR,
            Scenario.PRIOR_YEAR_KUM,
        ),
        sub_kpis=(
            ("thereof Allocation-Relevant", HEADCOUNT_ALLOCATION_RELEVANT),
            ("excl. Allocation Germany", HEADCOUNT_EXCL_ALLOCATION_DE),
            ("excl. Allocation", HEADCOUNT_EXCL_ALLOCATION),
        ),
        show_prior_year=True,
    ),
}


class WorkbookAssembler:
    """Builds the Revenue / Profit / Headcount workbook sheets."""

    blend_policy = BlendPolicy.CUTOFF

    def __init__(self, repository: SeriesRepository, *, max_workers: int = 1) -> None:
        self.repository = repository
        self.max_workers = max_workers

    def _sheet_keys(self, layout: SheetLayout, *, year: int, entity_codes: list[str]) -> list[SeriesKey]:
        keys = series_keys(year=year, entity_codes=entity_codes, kpi=layout.kpi, scenarios=layout.scenarios)
        for _, sub_kpi in layout.sub_kpis:
            keys.extend(
                series_keys(year=year, entity_codes=entity_codes, kpi=sub_kpi, scenarios=BLENDED_SCENARIOS)
            )
        return keys

    @staticmethod
    def _line(entity: EntityRecord, label: str, series: MonthSeries) -> dict[str, object]:
        return {
            "entity_code": entity.code,
            "entity_name": entity.display_name,
            "label": label,
            "values": series.to_list(),
        }

    def _actual_forecast(self, view: SeriesView, entity: EntityRecord, kpi: KpiRef, cutoff_month: int) -> MonthSeries:
        return blend(
            view.get(entity, kpi, Scenario.IST),
            view.get(entity, kpi, Scenario.FC),
            policy=self.blend_policy,
            cutoff_month=cutoff_month,
        )

    def _entity_lines(
        self,
        layout: SheetLayout,
        view: SeriesView,
        entity: EntityRecord,
        cutoff_month: int,
    ) -> list[dict[str, object]]:
        plan = view.get(entity, layout.kpi, Scenario.PLAN)
        actual_forecast = self._actual_forecast(view, entity, layout.kpi, cutoff_month)

        lines = [
            self._line(entity, layout.plan_label, plan),
            self._line(entity, layout.actual_forecast_label, actual_forecast),
            self._line(entity, "Cumulative Plan", cumulative(plan)),
            self._line(entity, "Cumulative Actual/Forecast", cumulative(actual_forecast)),
        ]
        for label, sub_kpi in layout.sub_kpis:
            lines.append(self._line(entity, label, self._actual_forecast(view, entity, sub_kpi, cutoff_month)))
        if layout.show_prior_year:
            lines.append(self._line(entity, "Prior Year", view.get(entity, layout.kpi, Scenario.PRIOR_YEAR)))
        lines.append(self._line(entity, "Prior Year Cumulative", view.get(entity, layout.kpi, Scenario.PRIOR_YEAR_KUM)))
        return lines

    def _charts(
        self,
        layout: SheetLayout,
        view: SeriesView,
        group: EntityRecord,
        cutoff_month: int,
    ) -> dict[str, list[dict[str, object]]]:
        plan = view.get(group, layout.kpi, Scenario.PLAN)
        actual_forecast = self._actual_forecast(view, group, layout.kpi, cutoff_month)
        cum_plan = cumulative(plan)
        cum_actual_forecast = cumulative(actual_forecast)
        prior_year_cum = view.get(group, layout.kpi, Scenario.PRIOR_YEAR_KUM)

        bar = [
            {
                "month": month,
                "label": label,
                "plan": plan[month],
                "actual_forecast": actual_forecast[month],
            }
            for month, label in zip(MONTHS, MONTH_LABELS)
        ]
        line = [
            {
                "month": month,
                "label": label,
                "cum_plan": cum_plan[month],
                "cum_actual_forecast": cum_actual_forecast[month],
                "prior_year_cum": prior_year_cum[month],
            }
            for month, label in zip(MONTHS, MONTH_LABELS)
        ]
        return {"bar": bar, "line": line}

    def assemble_workbook_sheet(self, sheet: KpiArea, year: int, cutoff_month: int) -> dict[str, object]:
        cutoff_month = validate_cutoff_month(cutoff_month)
        layout = SHEET_LAYOUTS[KpiArea(sheet)]

        entities = self.repository.get_entities()
        leaf_codes = [entity.code for entity in leaf_entities(entities)]
        series_map = load_series_map(
            self.repository,
            self._sheet_keys(layout, year=year, entity_codes=leaf_codes),
            max_workers=self.max_workers,
        )
        view = SeriesView(series_map, year=year, entities=entities)

        lines: list[dict[str, object]] = []
        for entity in entities:
            lines.extend(self._entity_lines(layout, view, entity, cutoff_month))

        group = next(
            (entity for entity in entities if isinstance(entity, AggregateEntity)),
            AggregateEntity(code="group", display_name="Group"),
        )

        return {
            "sheet": KpiArea(sheet).value,
            "year": year,
            "cutoff_month": cutoff_month,
            "months": [{"month": month, "label": label} for month, label in zip(MONTHS, MONTH_LABELS)],
            "entities": [
                {
                    "code": entity.code,
                    "name": entity.display_name,
                    "is_aggregate": isinstance(entity, AggregateEntity),
                }
                for entity in entities
            ],
            "lines": lines,
            "charts": self._charts(layout, view, group, cutoff_month),
        }
