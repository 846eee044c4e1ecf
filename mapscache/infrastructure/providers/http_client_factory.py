"""
HTTP client factory for the maps provider.
"""

import os
from typing import Any, Dict, Optional

import httpx

from ...config import Settings
from ...logging import warning, LogRecord, LogEvent


class HttpClientFactory:
    """Factory for the shared httpx client used by provider calls."""

    @staticmethod
    def create_client(settings: Settings) -> httpx.AsyncClient:
        """
        Create a pooled async client configured from settings.

        Args:
            settings: Application settings

        Returns:
            Configured httpx client
        """
        return httpx.AsyncClient(**HttpClientFactory._build_httpx_config(settings))

    @staticmethod
    def _build_httpx_config(settings: Settings) -> Dict[str, Any]:
        return {
            "base_url": settings.maps_base_url,
            "limits": httpx.Limits(
                max_keepalive_connections=settings.pool_max_keepalive_connections,
                max_connections=settings.pool_max_connections,
                keepalive_expiry=settings.pool_keepalive_expiry,
            ),
            "timeout": httpx.Timeout(settings.http_timeout_seconds),
            "verify": os.getenv("SSL_CERT_FILE", True),
            "headers": HttpClientFactory.get_default_headers(settings),
        }

    @staticmethod
    async def close_client(client: Optional[httpx.AsyncClient]) -> None:
        """
        Close an HTTP client, logging instead of raising on failure.

        Args:
            client: HTTP client to close
        """
        if client is None or client.is_closed:
            return
        try:
            await client.aclose()
        except (httpx.HTTPError, RuntimeError) as e:
            warning(
                LogRecord(
                    event=LogEvent.LIFECYCLE.value,
                    message=f"Error closing HTTP client: {e}",
                ),
                exc=e,
            )

    @staticmethod
    def get_default_headers(settings: Settings) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": f"{settings.app_name}/{settings.app_version}",
        }
