"""Custom exception hierarchy for mapscache.

Only ``BudgetExceededError`` and the provider's own failures
(``UpstreamError`` or whatever the remote call raised) ever reach callers of
memoized functions. ``PersistenceError`` is raised by the storage layer and
always absorbed by the cache and ledger persistence paths.
"""

from typing import Optional, Dict, Any


class MapsCacheException(Exception):
    """Base exception for all mapscache-specific exceptions."""

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.details = details or {}


class BudgetExceededError(MapsCacheException):
    """Raised when the daily budget blocks a remote call."""

    def __init__(
        self,
        message: str,
        category: Optional[str] = None,
        budget_status: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.category = category
        self.budget_status = budget_status or {}


class ProviderError(MapsCacheException):
    """Base exception for provider-related errors."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.provider_name = provider_name


class UpstreamError(ProviderError):
    """Raised when a maps provider call fails or returns a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider_status: Optional[str] = None,
        provider_name: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, provider_name, request_id, details)
        self.status_code = status_code
        self.provider_status = provider_status


class PersistenceError(MapsCacheException):
    """Raised when loading or saving a snapshot blob fails."""

    def __init__(
        self,
        message: str,
        store: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.store = store


class ConfigurationError(MapsCacheException):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.config_key = config_key


class UnknownCategoryError(MapsCacheException, ValueError):
    """Raised when a usage category is not one of the registered categories."""

    def __init__(
        self,
        message: str,
        category: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.category = category
