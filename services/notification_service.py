"""
Notification dispatch seam.

The lead lifecycle core hands NotificationRequests to a dispatcher and never
waits on delivery. Delivery itself (email provider, retries) is an external
collaborator; the default dispatcher only records the hand-off in the log.
"""

from __future__ import annotations

import logging
from typing import Protocol

from domain.notification import NotificationRequest

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def dispatch(self, request: NotificationRequest) -> None:
        """Accept a request for delivery. May raise if the hand-off fails."""


class LoggingNotificationDispatcher:
    """Dispatcher used when no delivery backend is configured."""

    def dispatch(self, request: NotificationRequest) -> None:
        logger.info(
            f"Notification '{request.template_key}' queued",
            extra={
                "recipient": request.recipient,
                "template_key": request.template_key,
            },
        )


__all__ = ["LoggingNotificationDispatcher", "NotificationDispatcher"]
