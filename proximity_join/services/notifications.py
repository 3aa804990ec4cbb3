"""Host UI notifications for join runs."""

import logging
from typing import Protocol

from proximity_join.models.domain import JoinResult
from proximity_join.models.enums import ToastLevel

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Notifications the host application exposes to the join."""

    def refresh_ui(self) -> None:
        """Re-render anything showing layer data."""
        ...

    def show_toast(self, message: str, level: str) -> None:
        """Show a transient message to the user."""
        ...


class NotificationService:
    """Sends join notifications to the host, if one is attached.

    Notification failures are logged and never propagate into the join:
    the join result is already committed by the time they are sent.
    """

    def __init__(self, notifier: Notifier | None = None):
        self._notifier = notifier
        if notifier is None:
            logger.info("NotificationService has no notifier - notifications will be skipped")

    def toast(self, message: str, level: ToastLevel) -> bool:
        """Show a toast.

        Returns:
            True if the host accepted the toast, False otherwise
        """
        if self._notifier is None:
            logger.debug(f"Skipping toast ({level}): {message}")
            return False
        try:
            self._notifier.show_toast(message, str(level))
            return True
        except Exception as e:
            logger.exception(f"Host failed to show toast: {e}")
            return False

    def refresh_ui(self) -> bool:
        if self._notifier is None:
            return False
        try:
            self._notifier.refresh_ui()
            return True
        except Exception as e:
            logger.exception(f"Host failed to refresh UI: {e}")
            return False

    def send_configuration_error(self, message: str) -> bool:
        return self.toast(message, ToastLevel.WARNING)

    def send_join_completed(self, result: JoinResult) -> bool:
        """Toast the summary counts of a completed join.

        Level is success when every feature matched, info otherwise.
        """
        level = (
            ToastLevel.SUCCESS
            if result.matched_count == result.total_processed
            else ToastLevel.INFO
        )
        message = (
            f"Proximity join complete: {result.matched_count} matched, "
            f"{result.unmatched_count} unmatched"
        )
        return self.toast(message, level)

    def send_join_cancelled(self, processed: int, total: int) -> bool:
        return self.toast(
            f"Proximity join cancelled after {processed} of {total} features; no changes made",
            ToastLevel.INFO,
        )
