"""Fire-and-forget delivery of auto-fill outcome events."""

from typing import Any, Dict, Optional, Protocol

import httpx

from apply_autofill.config import settings
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    async def notify(self, event: Dict[str, Any]) -> None:
        ...


class LogNotifier:
    """Writes events to the structured log."""

    def __init__(self):
        self.logger = logger.bind(component="log_notifier")

    async def notify(self, event: Dict[str, Any]) -> None:
        self.logger.info("Auto-fill event", event_type=event.get("event"), payload=event)

    async def close(self):
        return None


class WebhookNotifier:
    """POSTs events as JSON to a webhook. Delivery failures are logged, never raised."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.notify_webhook_url
        if not self.url:
            raise ValueError("A webhook URL is required")
        self.logger = logger.bind(component="webhook_notifier")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def notify(self, event: Dict[str, Any]) -> None:
        try:
            response = await self.client.post(self.url, json=event)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.warning("Event delivery failed", event_type=event.get("event"), error=str(e))
            return
        self.logger.debug("Event delivered", event_type=event.get("event"))

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
