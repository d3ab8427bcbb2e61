# backend/utils/notifications.py
import httpx
import logging

from config import settings

logger = logging.getLogger(__name__)


# Fire-and-forget notifications (order placed, payout processed, OTP codes).
# Delivery failures are logged and never reach the caller.
class LogNotifier:
    async def send(self, recipient: str, event: str, payload: dict) -> None:
        logger.info("Notification %s -> %s: %s", event, recipient, payload)


class WebhookNotifier:
    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    async def send(self, recipient: str, event: str, payload: dict) -> None:
        body = {"recipient": recipient, "event": event, "payload": payload}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Notification webhook error for {event}: {e}")


def get_notifier():
    if settings.NOTIFY_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFY_WEBHOOK_URL)
    return LogNotifier()
