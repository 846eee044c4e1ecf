"""Daily usage ledger with spend estimation against a budget."""

from datetime import date
from typing import Callable, Dict, Mapping, Optional, Union

import anyio
from asyncer import asyncify
from pydantic import ValidationError

from .costs import build_cost_table, resolve_category
from ...constants import (
    BUDGET_CRITICAL_PERCENT,
    BUDGET_WARNING_PERCENT,
    DEFAULT_DAILY_BUDGET,
    SNAPSHOT_FORMAT_VERSION,
)
from ...domain.exceptions import PersistenceError
from ...domain.models import BudgetStatus, LedgerSnapshot, SpendEstimate, UsageReport
from ...enums import AlertLevel, UsageCategory
from ...infrastructure.storage.base import BlobStore
from ...logging import error, info, warning, LogRecord, LogEvent

CategoryLike = Union[UsageCategory, str]


def _zeroed_counters() -> Dict[UsageCategory, int]:
    return {category: 0 for category in UsageCategory}


def _zeroed_units() -> Dict[UsageCategory, float]:
    return {category: 0.0 for category in UsageCategory}


class UsageLedger:
    """
    Per-category call counters for the current day.

    Counters are zeroed the first time the ledger is touched on a new
    calendar day, before any increment for that day is recorded. Every
    mutation is persisted (best effort) through the optional blob store, and
    a snapshot from a previous day is ignored on load. With
    ``flush_interval_seconds`` set, mutations only mark the ledger dirty and
    ``run_flush_loop`` writes it from a worker thread.

    Spend is ``sum(units[c] * cost_per_unit[c])`` where ``units`` is the call
    count scaled by the per-call weight (for example the number of billed
    fields).
    """

    def __init__(
        self,
        daily_budget: float = DEFAULT_DAILY_BUDGET,
        cost_per_unit: Optional[Mapping[CategoryLike, float]] = None,
        blob_store: Optional[BlobStore] = None,
        today: Callable[[], date] = date.today,
        flush_interval_seconds: Optional[float] = None,
    ):
        """
        Initialize the ledger and load today's persisted totals.

        Args:
            daily_budget: Spend ceiling in currency units
            cost_per_unit: Overrides for the default cost table
            blob_store: Where the ledger is persisted, None for memory only
            today: Source of the current calendar day
            flush_interval_seconds: Period of deferred saves, None to save on
                every mutation
        """
        if daily_budget < 0:
            raise ValueError("daily_budget must not be negative")
        self._daily_budget = float(daily_budget)
        self._cost_per_unit = build_cost_table(cost_per_unit)
        self._blob_store = blob_store
        self._today = today
        self.flush_interval_seconds = flush_interval_seconds
        self._dirty = False
        self._last_reset_date = today()
        self._counters = _zeroed_counters()
        self._units = _zeroed_units()
        self.load()

    @property
    def daily_budget(self) -> float:
        return self._daily_budget

    @property
    def last_reset_date(self) -> date:
        return self._last_reset_date

    @property
    def counters_by_category(self) -> Dict[UsageCategory, int]:
        self._reset_if_new_day()
        return dict(self._counters)

    @property
    def units_by_category(self) -> Dict[UsageCategory, float]:
        self._reset_if_new_day()
        return dict(self._units)

    @property
    def cost_per_unit(self) -> Dict[UsageCategory, float]:
        return dict(self._cost_per_unit)

    def record_usage(
        self, category: CategoryLike, count: int = 1, weight: float = 1.0
    ) -> None:
        """
        Record ``count`` calls of ``category``.

        Args:
            category: Billable request category
            count: Number of calls
            weight: Billed units per call, e.g. the number of requested fields

        Raises:
            UnknownCategoryError: If the category is not registered
            ValueError: If count or weight is negative
        """
        resolved = resolve_category(category)
        if count < 0:
            raise ValueError("count must not be negative")
        if weight < 0:
            raise ValueError("weight must not be negative")

        self._reset_if_new_day()
        self._counters[resolved] += count
        self._units[resolved] += count * weight
        self._persist()
        self._check_budget_alert()

    def estimated_spend(self) -> SpendEstimate:
        """Spend so far today, in total and per category."""
        self._reset_if_new_day()
        by_category = {
            category: self._units[category] * self._cost_per_unit.get(category, 0.0)
            for category in UsageCategory
        }
        return SpendEstimate(total=sum(by_category.values()), by_category=by_category)

    def budget_status(self) -> BudgetStatus:
        """Project today's spend against the daily budget."""
        total = self.estimated_spend().total
        if self._daily_budget > 0:
            percent_used = total / self._daily_budget * 100
        else:
            percent_used = 0.0 if total == 0 else 100.0

        alert_level = AlertLevel.NONE
        if percent_used > BUDGET_CRITICAL_PERCENT:
            alert_level = AlertLevel.CRITICAL
        elif percent_used > BUDGET_WARNING_PERCENT:
            alert_level = AlertLevel.WARNING

        return BudgetStatus(
            within_budget=total <= self._daily_budget,
            percent_used=percent_used,
            estimated_spend=total,
            daily_budget=self._daily_budget,
            alert_level=alert_level,
        )

    def should_allow(self, category: CategoryLike) -> bool:
        """
        Soft throttle: False only when the alert is critical and the budget is spent.

        Callers remain responsible for honoring the answer.
        """
        resolved = resolve_category(category)
        status = self.budget_status()
        if status.alert_level == AlertLevel.CRITICAL and not status.within_budget:
            warning(
                LogRecord(
                    event=LogEvent.BUDGET_BLOCKED.value,
                    message=f"API request blocked: daily budget exceeded for {resolved.value}",
                    data={
                        "category": resolved.value,
                        "percent_used": round(status.percent_used, 1),
                        "estimated_spend": round(status.estimated_spend, 4),
                        "daily_budget": status.daily_budget,
                    },
                )
            )
            return False
        return True

    def set_daily_budget(self, amount: float) -> None:
        """Change the ceiling; applies to the next status check."""
        if amount < 0:
            raise ValueError("daily budget must not be negative")
        previous = self._daily_budget
        self._daily_budget = float(amount)
        info(
            LogRecord(
                event=LogEvent.BUDGET_UPDATED.value,
                message="Daily budget updated",
                data={"previous": previous, "daily_budget": self._daily_budget},
            )
        )

    def set_cost_per_unit(self, category: CategoryLike, cost: float) -> None:
        if cost < 0:
            raise ValueError("cost must not be negative")
        self._cost_per_unit[resolve_category(category)] = float(cost)

    def reset(self) -> None:
        """Zero all counters for today."""
        self._zero(self._today())
        self._persist()

    def usage_report(self) -> UsageReport:
        spend = self.estimated_spend()
        return UsageReport(
            last_reset_date=self._last_reset_date,
            counters_by_category=dict(self._counters),
            units_by_category=dict(self._units),
            cost_per_unit=dict(self._cost_per_unit),
            spend=spend,
            budget=self.budget_status(),
        )

    def _zero(self, day: date) -> None:
        self._counters = _zeroed_counters()
        self._units = _zeroed_units()
        self._last_reset_date = day
        info(
            LogRecord(
                event=LogEvent.LEDGER_RESET.value,
                message="Usage counters reset",
                data={"date": day.isoformat()},
            )
        )

    def _reset_if_new_day(self) -> bool:
        today = self._today()
        if today == self._last_reset_date:
            return False
        self._zero(today)
        self._persist()
        return True

    def _check_budget_alert(self) -> None:
        status = self.budget_status()
        if status.alert_level == AlertLevel.NONE:
            return
        record = LogRecord(
            event=LogEvent.BUDGET_ALERT.value,
            message=(
                f"Maps API budget {status.alert_level.value}: "
                f"{status.percent_used:.1f}% used "
                f"({status.estimated_spend:.2f}/{status.daily_budget:.2f})"
            ),
            data={
                "alert_level": status.alert_level.value,
                "percent_used": round(status.percent_used, 1),
            },
        )
        if status.alert_level == AlertLevel.CRITICAL:
            error(record)
        else:
            warning(record)

    def load(self) -> bool:
        """
        Load today's totals from the blob store.

        Returns:
            True if persisted counters were applied
        """
        if self._blob_store is None:
            return False

        try:
            blob = self._blob_store.load()
        except PersistenceError as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message=f"Failed to load usage ledger: {e.message}",
                    data={"store": self._blob_store.name},
                ),
                exc=e,
            )
            return False

        if blob is None:
            return False

        try:
            snapshot = LedgerSnapshot.model_validate_json(blob)
        except ValidationError as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message="Ignoring unreadable usage ledger",
                    data={"store": self._blob_store.name, "errors": e.error_count()},
                )
            )
            return False

        today = self._today()
        if snapshot.version != SNAPSHOT_FORMAT_VERSION or snapshot.last_reset_date != today:
            info(
                LogRecord(
                    event=LogEvent.LEDGER_RESTORE.value,
                    message="Discarding usage ledger from a previous day",
                    data={"snapshot_date": snapshot.last_reset_date.isoformat()},
                )
            )
            return False

        self._last_reset_date = today
        self._counters = _zeroed_counters()
        self._counters.update(snapshot.counters_by_category)
        self._units = _zeroed_units()
        for category in UsageCategory:
            self._units[category] = snapshot.units_by_category.get(
                category, float(self._counters[category])
            )

        info(
            LogRecord(
                event=LogEvent.LEDGER_RESTORE.value,
                message="Restored usage ledger",
                data={"counters": {c.value: n for c, n in self._counters.items() if n}},
            )
        )
        return True

    def save(self) -> bool:
        """Persist the current counters now. Failures are logged, never raised."""
        if self._blob_store is None:
            return False
        self._dirty = False
        if not self._write(self._dump()):
            self._dirty = True
            return False
        return True

    async def flush(self) -> bool:
        """Write pending changes off the event loop. Returns True if written."""
        if self._blob_store is None or not self._dirty:
            return False
        blob = self._dump()
        self._dirty = False
        if not await asyncify(self._write)(blob):
            self._dirty = True
            return False
        return True

    async def run_flush_loop(self) -> None:
        """Flush pending changes every ``flush_interval_seconds`` until cancelled."""
        if not self.flush_interval_seconds:
            return
        while True:
            await anyio.sleep(self.flush_interval_seconds)
            await self.flush()

    def _persist(self) -> None:
        if self.flush_interval_seconds:
            self._dirty = True
        else:
            self.save()

    def _dump(self) -> str:
        return LedgerSnapshot(
            last_reset_date=self._last_reset_date,
            counters_by_category=self._counters,
            units_by_category=self._units,
        ).model_dump_json()

    def _write(self, blob: str) -> bool:
        try:
            self._blob_store.save(blob)
        except PersistenceError as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message=f"Failed to save usage ledger: {e.message}",
                    data={"store": self._blob_store.name},
                ),
                exc=e,
            )
            return False
        return True
