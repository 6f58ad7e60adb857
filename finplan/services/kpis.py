"""KPIs the assemblers read."""

from finplan.models.entities import KpiArea
from finplan.repositories.records import KpiRef

REVENUE = KpiRef(area=KpiArea.REVENUE, code="revenue")
EBIT = KpiRef(area=KpiArea.PROFIT, code="ebit")
HEADCOUNT = KpiRef(area=KpiArea.HEADCOUNT, code="headcount")
HEADCOUNT_ALLOCATION_RELEVANT = KpiRef(area=KpiArea.HEADCOUNT, code="headcount_allocation_relevant")
HEADCOUNT_EXCL_ALLOCATION_DE = KpiRef(area=KpiArea.HEADCOUNT, code="headcount_excl_allocation_de")
HEADCOUNT_EXCL_ALLOCATION = KpiRef(area=KpiArea.HEADCOUNT, code="headcount_excl_allocation")

PRIMARY_KPI_BY_AREA: dict[KpiArea, KpiRef] = {
    KpiArea.REVENUE: REVENUE,
    KpiArea.PROFIT: EBIT,
    KpiArea.HEADCOUNT: HEADCOUNT,
}
