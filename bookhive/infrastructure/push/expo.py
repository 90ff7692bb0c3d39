"""Expo push notification sender.

Posts message batches to the Expo push API over HTTP using **httpx**.
Expo accepts at most 100 messages per request, so larger batches are split
into consecutive chunks. Any transport error or non-2xx response aborts the
remaining chunks and is reported as :class:`DispatchError`. Per-ticket
errors inside a 200 response (e.g. ``DeviceNotRegistered``) are logged but
do not fail the batch.

Constructor args:
    push_url:    Expo endpoint (default ``https://exp.host/--/api/v2/push/send``).
    timeout:     Per-request timeout in seconds (default 10).
    batch_size:  Messages per request (default 100).
    transport:   Optional ``httpx`` transport, used by tests.
"""

import logging
from typing import Optional

import httpx

from bookhive.domain.entities import PushMessage
from bookhive.domain.errors import DispatchError
from bookhive.domain.repositories import INotificationSender

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


class ExpoPushSender(INotificationSender):

    def __init__(
        self,
        push_url: str = EXPO_PUSH_URL,
        timeout: float = 10.0,
        batch_size: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.push_url = push_url
        self.timeout = timeout
        self.batch_size = batch_size
        self._transport = transport

    async def send_batch(self, messages: list[PushMessage]) -> None:
        if not messages:
            return

        chunks = [
            messages[i:i + self.batch_size] for i in range(0, len(messages), self.batch_size)
        ]
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                for chunk in chunks:
                    resp = await client.post(
                        self.push_url,
                        json=[m.to_payload() for m in chunk],
                        headers={"Accept": "application/json"},
                    )
                    resp.raise_for_status()
                    self._log_ticket_errors(resp)
        except httpx.HTTPError as exc:
            raise DispatchError(f"Expo push failed: {exc}") from exc

        logger.info("Expo push: %d messages sent in %d request(s)", len(messages), len(chunks))

    @staticmethod
    def _log_ticket_errors(resp: httpx.Response) -> None:
        try:
            body = resp.json()
        except ValueError:
            return
        tickets = body.get("data", []) if isinstance(body, dict) else []
        if not isinstance(tickets, list):
            return
        for ticket in tickets:
            if isinstance(ticket, dict) and ticket.get("status") == "error":
                logger.warning(
                    "Expo ticket error: %s (%s)",
                    ticket.get("message", "unknown"),
                    (ticket.get("details") or {}).get("error", "-"),
                )
