from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, NonNegativeFloat, NonNegativeInt

from ..constants import SNAPSHOT_FORMAT_VERSION
from ..enums import AlertLevel, ErrorType, UsageCategory


class LocationCoords(BaseModel):
    """Represents a geographic coordinate pair.

    Attributes:
        lat (float): Latitude in decimal degrees.
        lng (float): Longitude in decimal degrees.
    """

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class CacheEntryRecord(BaseModel):
    """Serialized form of a cache entry inside a snapshot.

    Attributes:
        value (Any): The cached payload.
        created_at (float): Wall-clock insertion time in seconds.
        ttl_seconds (float): Lifetime of the entry.
        access_count (int): Number of successful reads.
        last_accessed_at (float): Wall-clock time of the last read.
    """

    value: Any = None
    created_at: float
    ttl_seconds: float = Field(gt=0)
    access_count: int = Field(default=0, ge=0)
    last_accessed_at: float


class CacheSnapshot(BaseModel):
    """Snapshot of the most accessed cache entries.

    Attributes:
        version (int): Internal format version; any other version is discarded.
        timestamp (float): Wall-clock time the snapshot was taken.
        entries (List[Tuple[str, CacheEntryRecord]]): Key/entry pairs.
    """

    version: int = SNAPSHOT_FORMAT_VERSION
    timestamp: float
    entries: List[Tuple[str, CacheEntryRecord]] = Field(default_factory=list)


class LedgerSnapshot(BaseModel):
    """Persisted state of the usage ledger.

    Attributes:
        version (int): Internal format version; any other version is discarded.
        last_reset_date (date): Calendar day the counters belong to.
        counters_by_category (Dict[UsageCategory, int]): Raw call counts.
        units_by_category (Dict[UsageCategory, float]): Weighted billed units.
    """

    version: int = SNAPSHOT_FORMAT_VERSION
    last_reset_date: date
    counters_by_category: Dict[UsageCategory, NonNegativeInt] = Field(default_factory=dict)
    units_by_category: Dict[UsageCategory, NonNegativeFloat] = Field(default_factory=dict)


class CacheStats(BaseModel):
    """Read-only view of the cache store for observability."""

    size: int
    max_size: int
    total_hits: int
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    evictions: int = 0
    expirations: int = 0
    writes: int = 0
    uptime_seconds: float = 0.0
    oldest_entry_age: Optional[float] = None
    newest_entry_age: Optional[float] = None


class SpendEstimate(BaseModel):
    """Estimated spend for the current day."""

    total: float
    by_category: Dict[UsageCategory, float] = Field(default_factory=dict)


class BudgetStatus(BaseModel):
    """Current spend projected against the daily budget.

    Attributes:
        within_budget (bool): True while the estimated spend does not exceed the budget.
        percent_used (float): Estimated spend as a percentage of the budget.
        estimated_spend (float): Estimated spend in currency units.
        daily_budget (float): Configured ceiling in currency units.
        alert_level (AlertLevel): ``none``, ``warning`` or ``critical``.
    """

    within_budget: bool
    percent_used: float
    estimated_spend: float
    daily_budget: float
    alert_level: AlertLevel = AlertLevel.NONE


class UsageReport(BaseModel):
    """Counters, spend and budget for the current day."""

    last_reset_date: date
    counters_by_category: Dict[UsageCategory, int]
    units_by_category: Dict[UsageCategory, float]
    cost_per_unit: Dict[UsageCategory, float]
    spend: SpendEstimate
    budget: BudgetStatus


class BudgetUpdate(BaseModel):
    """Request body for changing the daily budget."""

    amount: float = Field(ge=0)


class ErrorDetail(BaseModel):
    """Error body returned by the HTTP interface."""

    type: ErrorType
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: ErrorDetail
