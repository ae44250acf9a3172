"""HTTP client for bluegreen-aware applications."""

from __future__ import annotations

from typing import Any

import requests
import structlog

from bluegreen.config import ApplicationClientSettings
from bluegreen.domain.models.discovery import DiscoveryResult
from bluegreen.domain.models.environment import Application, DatabaseType, PhysicalDatabase
from bluegreen.domain.ports.services import ApplicationClient


logger = structlog.get_logger(__name__)


class HttpApplicationClient(ApplicationClient):
    """Calls the application's discovery endpoint, relative to its own url path."""

    def __init__(self, settings: ApplicationClientSettings) -> None:
        self._settings = settings

    def discover_database(self, application: Application) -> DiscoveryResult:
        url = application.make_hostname_uri().rstrip("/") + self._settings.discovery_path
        response = requests.get(url, timeout=self._settings.timeout_seconds)
        if response.status_code != 200:
            raise ApplicationClientError(
                f"Discovery failed [{response.status_code}] at {url}: {response.text}"
            )
        result = self.parse_discovery_result(response.json())
        logger.debug(
            "application_discovery_response",
            url=url,
            lock_error=result.lock_error,
            discovery_error=result.discovery_error,
        )
        return result

    @staticmethod
    def parse_discovery_result(payload: dict[str, Any]) -> DiscoveryResult:
        """Maps the application's camelCase json onto a DiscoveryResult."""
        physical_database = None
        physical_payload = payload.get("physicalDatabase")
        if physical_payload:
            physical_database = PhysicalDatabase(
                db_type=DatabaseType(str(physical_payload.get("dbType", "rds")).lower()),
                instance_name=physical_payload["instanceName"],
                live=bool(physical_payload.get("live", False)),
                driver_class_name=physical_payload.get("driverClassName", ""),
                url=physical_payload.get("url", ""),
                username=physical_payload.get("username", ""),
            )
        return DiscoveryResult(
            physical_database=physical_database,
            discovery_error=payload.get("discoveryError") or None,
            lock_error=bool(payload.get("lockError", False)),
        )


class ApplicationClientError(Exception):
    """Raised when an application answers with a non-success http status."""
