"""Enums module for mapscache.

Contains all enumeration classes used throughout the application.
"""

from enum import StrEnum


class UsageCategory(StrEnum):
    """Billable request categories of the maps provider."""
    GEOCODING = "geocoding"
    PLACE_DETAILS = "place_details"
    NEARBY_SEARCH = "nearby_search"
    TEXT_SEARCH = "text_search"
    AUTOCOMPLETE = "autocomplete"
    MAP_LOAD = "map_load"


class AlertLevel(StrEnum):
    """Budget alert levels."""
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"


class FieldMaskUseCase(StrEnum):
    """Place-details field mask presets."""
    VENUE_LIST = "venue_list"
    VENUE_BASIC = "venue_basic"
    VENUE_FULL = "venue_full"
    AUTOCOMPLETE = "autocomplete"


class ErrorType(StrEnum):
    """Error types returned by the HTTP interface."""
    INVALID_REQUEST = "invalid_request_error"
    BUDGET_EXCEEDED = "budget_exceeded_error"
    UPSTREAM = "upstream_error"
    API_ERROR = "api_error"
