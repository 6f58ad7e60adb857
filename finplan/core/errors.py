"""Domain exceptions raised by the computation core.

Missing months, missing scenarios, unknown entity/KPI codes and zero denominators are
not represented here: they resolve to defined zero values inside the core.
"""

from __future__ import annotations


class FinplanError(Exception):
    """Base class for all domain failures."""


class InvalidCutoffMonth(FinplanError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"cutoff_month must be an integer between 1 and 12, got {value!r}.")
        self.value = value


class InvalidMonthRange(FinplanError, ValueError):
    def __init__(self, month_from: object, month_to: object) -> None:
        super().__init__(
            f"month range must satisfy 1 <= month_from <= month_to <= 12, got {month_from!r}..{month_to!r}."
        )
        self.month_from = month_from
        self.month_to = month_to


class InvalidAsOfMonth(FinplanError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"as_of_month must be an integer between 1 and 13, got {value!r}.")
        self.value = value


class EmployeeNotFound(FinplanError, LookupError):
    def __init__(self, employee_id: int) -> None:
        super().__init__(f"Employee {employee_id} not found.")
        self.employee_id = employee_id


class ForecastAdjustmentUnavailable(FinplanError):
    """No completed-month actuals or targets to derive an achievement rate from."""


class PlanningCopyUnavailable(FinplanError):
    """Source year holds no planning records."""


class PartialWriteFailure(FinplanError):
    """A multi-row write stopped part way; earlier rows stay committed.

    Callers may re-invoke the operation: it recomputes the same values from the same
    inputs.
    """

    def __init__(self, operation: str, months_written: list[int]) -> None:
        super().__init__(
            f"{operation} failed after writing months {months_written or 'none'}; "
            "re-run the operation to complete it."
        )
        self.operation = operation
        self.months_written = list(months_written)
