"""
tests/fixtures.py

Shared test data and helper doubles for the launch flow.
All tests must use these fixtures instead of hardcoding test values.
"""

import base64
from datetime import date
from typing import Optional
from urllib.parse import quote

from launcher.events import EventChannel
from launcher.exceptions import AttributionTokenError
from launcher.orchestrator import LaunchOrchestrator
from launcher.schemas import (
    ConnectivityState,
    InterfaceClass,
    LaunchCompletionRecord,
    NetworkPath,
)

# ── Configuration values ────────────────────────────────────

TEST_UNLOCK_DATE_PLAIN: str = "2025-04-10"
TEST_UNLOCK_DATE: str = "%32%30%32%35%2D%30%34%2D%31%30"
TEST_BASE_PLAIN: str = "https://play.example.com"
TEST_BASE: str = "".join(f"%{ord(c):02X}" for c in TEST_BASE_PLAIN)

DAY_BEFORE_UNLOCK: date = date(2025, 4, 9)
UNLOCK_DAY: date = date(2025, 4, 10)
DAY_AFTER_UNLOCK: date = date(2025, 4, 11)

# Short timings keep the race ordering while tests stay fast
FAST_RETRY_DELAY: float = 0.01
FAST_TOKEN_TIMEOUT: float = 0.2
FAST_EMIT_DELAY: float = 0.0
PACED_EMIT_DELAY: float = 0.2


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def percent_encode_all(text: str) -> str:
    """Escape every character, the way the configuration constants are stored."""
    return quote(text, safe="")


def expected_destination(apns_token: str = "token", att_token: str = "token") -> str:
    return f"{TEST_BASE_PLAIN}/?data=" + b64(
        f"apns_token={apns_token}&att_token={att_token}"
    )


def build_path(
    satisfied: bool = True,
    interfaces: Optional[list[InterfaceClass]] = None,
    is_expensive: bool = False,
    is_constrained: bool = False,
) -> NetworkPath:
    """Build a NetworkPath with sensible defaults for testing."""
    return NetworkPath(
        satisfied=satisfied,
        is_expensive=is_expensive,
        is_constrained=is_constrained,
        interfaces=[InterfaceClass.WIFI] if interfaces is None else interfaces,
    )


class ScriptedMonitor:
    """Reports a scripted sequence of active flags; the last one repeats."""

    def __init__(self, active_sequence: list[bool]) -> None:
        self._sequence = list(active_sequence)
        self.checks = 0
        self.restored: EventChannel[None] = EventChannel("connectivity_restored")

    def current(self) -> ConnectivityState:
        index = min(self.checks, len(self._sequence) - 1)
        self.checks += 1
        return ConnectivityState(active=self._sequence[index])


class InMemoryLaunchStateStore:
    """Store double that records every save."""

    def __init__(self, record: Optional[LaunchCompletionRecord] = None) -> None:
        self.record = record or LaunchCompletionRecord()
        self.saves: list[LaunchCompletionRecord] = []
        self.loads = 0

    async def load(self) -> LaunchCompletionRecord:
        self.loads += 1
        return self.record

    async def save(self, record: LaunchCompletionRecord) -> bool:
        self.saves.append(record)
        self.record = record
        return True


class RecordingPlatform:
    """Platform bridge double counting side effects."""

    def __init__(self, attribution_token: Optional[str] = None) -> None:
        self._attribution_token = attribution_token
        self.registrations = 0
        self.authorization_requests = 0

    def register_for_remote_notifications(self) -> None:
        self.registrations += 1

    def request_notification_authorization(self) -> None:
        self.authorization_requests += 1

    def fetch_attribution_token(self) -> str:
        if self._attribution_token is None:
            raise AttributionTokenError("attribution unavailable in tests")
        return self._attribution_token


class EventRecorder:
    """Collects every value published on the orchestrator's outbound channels."""

    def __init__(self, orchestrator: LaunchOrchestrator) -> None:
        self.loading_targets: list[str] = []
        self.fallbacks: list[str] = []
        self.alerts: list[bool] = []
        orchestrator.loading_target_updated.subscribe(self.loading_targets.append)
        orchestrator.show_fallback.subscribe(self.fallbacks.append)
        orchestrator.show_connectivity_alert.subscribe(self.alerts.append)


def build_orchestrator(
    monitor=None,
    store: Optional[InMemoryLaunchStateStore] = None,
    platform: Optional[RecordingPlatform] = None,
    today: date = DAY_AFTER_UNLOCK,
    unlock_date: str = TEST_UNLOCK_DATE,
    base_destination: str = TEST_BASE,
    token_timeout: float = FAST_TOKEN_TIMEOUT,
    emit_delay: float = FAST_EMIT_DELAY,
) -> LaunchOrchestrator:
    """Build an orchestrator with fast timings and in-memory collaborators."""
    return LaunchOrchestrator(
        unlock_date=unlock_date,
        base_destination=base_destination,
        monitor=monitor or ScriptedMonitor([True]),
        store=store or InMemoryLaunchStateStore(),
        platform=platform or RecordingPlatform(),
        retry_delay=FAST_RETRY_DELAY,
        token_timeout=token_timeout,
        emit_delay=emit_delay,
        today=lambda: today,
    )
