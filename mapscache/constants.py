"""Constants module for mapscache configuration.

Contains default values for the cache store, the usage ledger, snapshot
persistence, the provider client and the field masks used to keep
place-details requests cheap.
"""

from typing import Dict, Tuple

from .enums import FieldMaskUseCase, UsageCategory

# Cache store defaults
DEFAULT_CACHE_MAX_SIZE = 500
DEFAULT_CACHE_TTL_SECONDS = 60 * 60
DEFAULT_CACHE_CLEANUP_INTERVAL_SECONDS = 15 * 60

# Snapshot defaults (only the most accessed entries are kept)
DEFAULT_SNAPSHOT_MAX_ENTRIES = 50
DEFAULT_SNAPSHOT_MIN_ACCESS_COUNT = 1
DEFAULT_SNAPSHOT_MAX_AGE_SECONDS = 24 * 60 * 60
DEFAULT_SNAPSHOT_INTERVAL_SECONDS = 10 * 60
SNAPSHOT_FORMAT_VERSION = 1
DEFAULT_LEDGER_FLUSH_INTERVAL_SECONDS = 5.0

# Per request kind TTLs
GEOCODE_TTL_SECONDS = 24 * 60 * 60
PLACE_DETAILS_TTL_SECONDS = 6 * 60 * 60
SEARCH_TTL_SECONDS = 60 * 60
AUTOCOMPLETE_TTL_SECONDS = 30 * 60

# Autocomplete session tokens
AUTOCOMPLETE_SESSION_TTL_SECONDS = 3 * 60
AUTOCOMPLETE_MAX_SESSIONS = 10_000

# Key precision (decimal places) for coordinates
LOCATION_KEY_PRECISION = 4
AUTOCOMPLETE_KEY_PRECISION = 2

# Budget defaults, in currency units per day
DEFAULT_DAILY_BUDGET = 50.0
BUDGET_WARNING_PERCENT = 75.0
BUDGET_CRITICAL_PERCENT = 90.0

# Approximate list prices per single call (or per billed field for place details)
DEFAULT_COST_PER_UNIT: Dict[UsageCategory, float] = {
    UsageCategory.GEOCODING: 0.005,
    UsageCategory.PLACE_DETAILS: 0.017,
    UsageCategory.NEARBY_SEARCH: 0.032,
    UsageCategory.TEXT_SEARCH: 0.032,
    UsageCategory.AUTOCOMPLETE: 0.00283,
    UsageCategory.MAP_LOAD: 0.007,
}

# Provider client defaults
DEFAULT_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
PROVIDER_SUCCESS_STATUSES: Tuple[str, ...] = ("OK", "ZERO_RESULTS")
DEFAULT_AUTOCOMPLETE_RADIUS_METERS = 50000

OPTIMIZED_FIELD_MASKS: Dict[FieldMaskUseCase, Tuple[str, ...]] = {
    # Minimal venue data for list views
    FieldMaskUseCase.VENUE_LIST: (
        "place_id",
        "name",
        "geometry/location",
        "business_status",
        "price_level",
        "rating",
    ),
    # Venue cards
    FieldMaskUseCase.VENUE_BASIC: (
        "place_id",
        "name",
        "formatted_address",
        "geometry/location",
        "business_status",
        "opening_hours/open_now",
        "price_level",
        "rating",
        "user_ratings_total",
        "photos",
    ),
    # Detail view, keep an eye on the field count
    FieldMaskUseCase.VENUE_FULL: (
        "place_id",
        "name",
        "formatted_address",
        "geometry/location",
        "business_status",
        "opening_hours",
        "price_level",
        "rating",
        "user_ratings_total",
        "reviews",
        "photos",
        "formatted_phone_number",
        "website",
    ),
    FieldMaskUseCase.AUTOCOMPLETE: (
        "place_id",
        "name",
        "formatted_address",
    ),
}
