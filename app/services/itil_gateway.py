"""
ITIL gateway.
Delivers lifecycle notification payloads to the external ITIL system.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class GatewayResult:
    """Outcome of a single delivery to the ITIL system."""

    success: bool
    message: str = ""
    reference: Optional[str] = None


class ItilGateway:
    """Interface used by the lifecycle service to notify the ITIL system."""

    def send(self, action: str, payload: Dict[str, Any]) -> GatewayResult:
        raise NotImplementedError

    def close(self) -> None:
        """Release any connections held by the gateway."""


class SimulatedItilGateway(ItilGateway):
    """Gateway used when no ITIL endpoint is configured. Every delivery succeeds."""

    def __init__(self):
        self.sent = []

    def send(self, action: str, payload: Dict[str, Any]) -> GatewayResult:
        self.sent.append((action, payload))
        logger.info(
            "Simulated ITIL call: action=%s change_id=%s",
            action,
            payload.get("id", payload.get("changeId")),
        )
        return GatewayResult(success=True, message="Simulated ITIL call accepted")


class HttpItilGateway(ItilGateway):
    """Gateway posting JSON payloads to ``{base_url}/{action}``."""

    def __init__(self, base_url: str, token: str = "", timeout: float = 10.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    def send(self, action: str, payload: Dict[str, Any]) -> GatewayResult:
        url = f"{self.base_url}/{action}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("ITIL call to %s failed: %s", url, exc)
            return GatewayResult(success=False, message=f"ITIL API unreachable: {exc}")

        if not response.ok:
            logger.warning("ITIL call to %s returned HTTP %s", url, response.status_code)
            return GatewayResult(
                success=False,
                message=f"ITIL API rejected {action} request (HTTP {response.status_code})",
            )

        reference = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            reference = body.get("reference") or body.get("id")
            if reference is not None:
                reference = str(reference)

        return GatewayResult(success=True, message="ITIL API accepted request", reference=reference)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


def build_itil_gateway() -> ItilGateway:
    """Build the gateway for the configured environment."""
    if settings.ITIL_API_URL:
        return HttpItilGateway(
            settings.ITIL_API_URL,
            token=settings.ITIL_API_TOKEN,
            timeout=settings.ITIL_API_TIMEOUT,
        )
    return SimulatedItilGateway()


# Dependency for FastAPI
def get_itil_gateway():
    gateway = build_itil_gateway()
    try:
        yield gateway
    finally:
        gateway.close()
