"""
launcher/schemas.py

Pydantic data models for the launch flow.
- NetworkPath / ConnectivityState: reachability as seen by the monitor
- DevicePayload: the two tokens encoded into the final destination
- LaunchCompletionRecord: durable "handshake already done" state
- RetryState: counters for one connectivity-wait episode
- LaunchScreenState: what the presentation layer should currently show
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from launcher.constants import (
    APNS_TOKEN_KEY,
    ATT_TOKEN_KEY,
    MAX_RETRY_COUNT,
    RETRY_DELAY_SECONDS,
    SENTINEL_TOKEN,
)


class InterfaceClass(str, Enum):
    """Network interface class reported by the reachability primitive."""

    CELLULAR = "cellular"
    WIFI = "wifi"
    WIRED_ETHERNET = "wiredEthernet"
    OTHER = "other"


# Preference order when a path uses several interfaces
_PREFERRED_INTERFACES: tuple[InterfaceClass, ...] = (
    InterfaceClass.CELLULAR,
    InterfaceClass.WIFI,
    InterfaceClass.WIRED_ETHERNET,
)


class NetworkPath(BaseModel):
    """Raw path observation delivered by the platform reachability listener."""

    satisfied: bool
    is_expensive: bool = False
    is_constrained: bool = False
    interfaces: list[InterfaceClass] = []


class ConnectivityState(BaseModel):
    """Current network reachability. Mutated only by ConnectivityMonitor."""

    model_config = ConfigDict(frozen=True)

    active: bool = False
    is_expensive: bool = False
    is_constrained: bool = False
    interface_class: InterfaceClass = InterfaceClass.OTHER

    @classmethod
    def from_path(cls, path: NetworkPath) -> "ConnectivityState":
        interface_class = next(
            (kind for kind in _PREFERRED_INTERFACES if kind in path.interfaces),
            InterfaceClass.OTHER,
        )
        return cls(
            active=path.satisfied,
            is_expensive=path.is_expensive,
            is_constrained=path.is_constrained,
            interface_class=interface_class,
        )


class DevicePayload(BaseModel):
    """Token pair sent downstream. Missing values fall back to the sentinel."""

    apns_token: str = SENTINEL_TOKEN
    att_token: str = SENTINEL_TOKEN

    @field_validator("apns_token", "att_token", mode="before")
    @classmethod
    def _fill_sentinel(cls, value: Optional[str]) -> str:
        return value or SENTINEL_TOKEN

    def as_query_items(self) -> dict[str, str]:
        """Key/value pairs in the fixed order used for encoding."""
        return {APNS_TOKEN_KEY: self.apns_token, ATT_TOKEN_KEY: self.att_token}


class LaunchCompletionRecord(BaseModel):
    """Durable record written once the first token exchange completes."""

    has_launched_before: bool = False
    stored_destination: Optional[str] = None


class RetryState(BaseModel):
    """Retry counters for a single connectivity-wait episode."""

    count: int = 0
    max_count: int = MAX_RETRY_COUNT
    delay_seconds: float = RETRY_DELAY_SECONDS

    @property
    def exhausted(self) -> bool:
        return self.count >= self.max_count

    def reset(self) -> None:
        self.count = 0


class LaunchPhase(str, Enum):
    """Orchestrator states. Terminal ones end a single run()."""

    IDLE = "idle"
    GATE_CHECK = "gate_check"
    GAME_FALLBACK = "game_fallback"
    CONNECTIVITY_WAIT = "connectivity_wait"
    RETRYING = "retrying"
    CONNECTIVITY_EXHAUSTED = "connectivity_exhausted"
    HANDSHAKE_DECISION = "handshake_decision"
    RESTORE_STORED = "restore_stored"
    TOKEN_EXCHANGE = "token_exchange"
    COMPLETED = "completed"


class LaunchStatus(str, Enum):
    """Which screen the presentation layer renders."""

    LOADING = "loading"
    DESTINATION = "destination"
    FALLBACK = "fallback"


class LaunchScreenState(BaseModel):
    """View model mirrored from orchestrator events."""

    status: LaunchStatus = LaunchStatus.LOADING
    destination: Optional[str] = None
    connectivity_alert: bool = False


class PushTokenRequest(BaseModel):
    """Request body for the inbound push-token bridge."""

    token: str


class LaunchStateResponse(LaunchScreenState):
    """Response body for GET /launch/state."""

    phase: LaunchPhase
    has_launched_before: bool
