"""
launcher/services/notification.py

Platform hooks used during the first-launch handshake:
push registration, the notification permission prompt and the
advertising attribution token.
Currently implements a logging stub; a native bridge subclasses PlatformBridge.
"""

import structlog

from launcher.exceptions import AttributionTokenError

logger = structlog.get_logger(__name__)


class PlatformBridge:
    """Default platform bridge with no native push or attribution support."""

    def register_for_remote_notifications(self) -> None:
        """
        Ask the platform for a push token.

        The token does not come back from this call; it arrives later through
        LaunchOrchestrator.receive_push_token.
        """
        logger.info("remote_notification_registration_requested")

    def request_notification_authorization(self) -> None:
        """Prompt the user for alert, badge and sound permission. Result is ignored."""
        logger.info("notification_authorization_requested")

    def fetch_attribution_token(self) -> str:
        raise AttributionTokenError("no attribution provider attached")
