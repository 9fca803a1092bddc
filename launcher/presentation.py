"""
launcher/presentation.py

Keeps a LaunchScreenState in step with the orchestrator's outbound events,
so a UI (or the HTTP bridge) can read what should be on screen right now.
"""

import structlog

from launcher.orchestrator import LaunchOrchestrator
from launcher.schemas import LaunchScreenState, LaunchStatus

logger = structlog.get_logger(__name__)


class LaunchScreen:
    """Loading until a destination or fallback event arrives."""

    def __init__(self, orchestrator: LaunchOrchestrator) -> None:
        self.state = LaunchScreenState()
        orchestrator.loading_target_updated.subscribe(self._on_loading_target_updated)
        orchestrator.show_fallback.subscribe(self._on_show_fallback)
        orchestrator.show_connectivity_alert.subscribe(self._on_connectivity_alert)

    def _on_loading_target_updated(self, destination: str) -> None:
        self.state = self.state.model_copy(
            update={"status": LaunchStatus.DESTINATION, "destination": destination}
        )

    def _on_show_fallback(self, destination: str) -> None:
        self.state = self.state.model_copy(
            update={"status": LaunchStatus.FALLBACK, "destination": destination}
        )

    def _on_connectivity_alert(self, visible: bool) -> None:
        logger.info("connectivity_alert_toggled", visible=visible)
        self.state = self.state.model_copy(update={"connectivity_alert": visible})
