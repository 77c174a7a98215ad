"""Notifier port for reservation events.

Delivery (email, push, chat) lives outside the engine. Notifications are sent
after the transaction commits; a failure is logged and never undoes the
transition that triggered it.
"""

import logging
import uuid
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, reservation_id: uuid.UUID, event: str) -> None: ...


class LoggingNotifier:
    """Default notifier: records the event in the application log."""

    async def notify(self, reservation_id: uuid.UUID, event: str) -> None:
        logger.info("Reservation %s: %s", reservation_id, event)


async def notify_safely(notifier: Notifier, reservation_id: uuid.UUID, event: str) -> None:
    try:
        await notifier.notify(reservation_id, event)
    except Exception:
        logger.exception("Notifier failed for reservation %s (%s)", reservation_id, event)
