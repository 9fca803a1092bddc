"""
launcher/orchestrator.py

Launch orchestration state machine.

Flow per run():
1. GateCheck: closed unlock gate -> fallback destination, done
2. ConnectivityWait: bounded retry loop, alert after exhaustion
3. HandshakeDecision: already launched -> restore the stored destination
4. TokenExchange: push token raced against a timeout, first one wins
5. Completed: record persisted, destination emitted

All state lives on one event loop; suspensions never block it, so the
connectivity "restored" handler can run while a retry or exchange is waiting.
"""

import asyncio
from datetime import date
from typing import Callable, Coroutine, Optional

import structlog

from launcher.constants import (
    EMIT_DELAY_SECONDS,
    MAX_RETRY_COUNT,
    RETRY_DELAY_SECONDS,
    SENTINEL_TOKEN,
    TOKEN_EXCHANGE_TIMEOUT_SECONDS,
)
from launcher.events import EventChannel
from launcher.schemas import (
    DevicePayload,
    LaunchCompletionRecord,
    LaunchPhase,
    RetryState,
)
from launcher.services.codec import decode_percent_ascii
from launcher.services.connectivity import ConnectivityMonitor
from launcher.services.destination import build_destination, is_valid_destination
from launcher.services.gate import is_gate_open
from launcher.services.notification import PlatformBridge
from launcher.services.persistence import LaunchStateStore

logger = structlog.get_logger(__name__)

# Winner labels for the token exchange race
_SOURCE_PUSH_TOKEN = "push_token"
_SOURCE_TIMEOUT = "timeout"


class LaunchOrchestrator:
    """Decides, once per process start, which destination to present."""

    def __init__(
        self,
        unlock_date: str,
        base_destination: str,
        monitor: ConnectivityMonitor,
        store: LaunchStateStore,
        platform: Optional[PlatformBridge] = None,
        *,
        max_retry_count: int = MAX_RETRY_COUNT,
        retry_delay: float = RETRY_DELAY_SECONDS,
        token_timeout: float = TOKEN_EXCHANGE_TIMEOUT_SECONDS,
        emit_delay: float = EMIT_DELAY_SECONDS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._unlock_date = unlock_date
        self._base_destination = base_destination
        self._monitor = monitor
        self._store = store
        self._platform = platform or PlatformBridge()
        self._token_timeout = token_timeout
        self._emit_delay = emit_delay
        self._today = today

        # ── Outbound events for the presentation layer ───────
        self.loading_target_updated: EventChannel[str] = EventChannel(
            "loading_target_updated"
        )
        self.show_fallback: EventChannel[str] = EventChannel("show_fallback")
        self.show_connectivity_alert: EventChannel[bool] = EventChannel(
            "show_connectivity_alert"
        )

        self.phase = LaunchPhase.IDLE
        self.connectivity_alert_visible = False
        self.retry = RetryState(max_count=max_retry_count, delay_seconds=retry_delay)

        self._apns_token = SENTINEL_TOKEN
        self._att_token = SENTINEL_TOKEN
        self._token_waiter: Optional[asyncio.Future] = None
        self._running = False
        self._pending: set[asyncio.Task] = set()

        monitor.restored.subscribe(self._on_connectivity_restored)

    # ── Entry points ─────────────────────────────────────────

    async def run(self) -> LaunchPhase:
        """
        Run one top-level launch attempt and return the phase it stopped in.

        A second call while an attempt is still in flight is a no-op.
        """
        if self._running:
            logger.info("launch_already_running", phase=self.phase.value)
            return self.phase

        self._running = True
        try:
            return await self._run()
        finally:
            self._running = False

    def receive_push_token(self, token: str) -> None:
        """Inbound push token from the platform delivery path."""
        waiter = self._token_waiter
        if waiter is None or waiter.done():
            logger.info("push_token_ignored", reason="no_exchange_pending")
            return

        logger.info("push_token_received", token_length=len(token))
        self._apns_token = token
        waiter.set_result(_SOURCE_PUSH_TOKEN)

    async def has_launched_before(self) -> bool:
        """True once the handshake has completed on this device."""
        record = await self._store.load()
        return record.has_launched_before

    async def wait_until_idle(self) -> None:
        """Wait for scheduled emissions and restoration re-runs to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel undelivered emissions and restoration re-runs, then wait for them."""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.info("launch_orchestrator_stopped", cancelled=len(pending))

    def device_payload(self) -> DevicePayload:
        return DevicePayload(apns_token=self._apns_token, att_token=self._att_token)

    # ── State machine ────────────────────────────────────────

    async def _run(self) -> LaunchPhase:
        self._set_phase(LaunchPhase.GATE_CHECK)
        unlock_date = decode_percent_ascii(self._unlock_date)
        if not is_gate_open(unlock_date, today=self._today()):
            destination = build_destination(self._decoded_base(), {})
            logger.info("gate_closed", unlock_date=unlock_date, destination=destination)
            if is_valid_destination(destination):
                self._emit_later(self.show_fallback, destination)
            return self._set_phase(LaunchPhase.GAME_FALLBACK)

        self._set_phase(LaunchPhase.CONNECTIVITY_WAIT)
        if not self._monitor.current().active:
            return await self._retry_connectivity()

        self.retry.reset()
        self._set_alert(False)
        return await self._decide_handshake()

    async def _retry_connectivity(self) -> LaunchPhase:
        """Re-check connectivity every retry delay until it returns or retries run out."""
        while True:
            if self.retry.exhausted:
                logger.warning(
                    "connectivity_alert_shown",
                    attempts=self.retry.count,
                )
                self._set_alert(True)
                self.retry.reset()
                return self._set_phase(LaunchPhase.CONNECTIVITY_EXHAUSTED)

            self.retry.count += 1
            self._set_phase(LaunchPhase.RETRYING)
            logger.info(
                "connectivity_retry_scheduled",
                attempt=self.retry.count,
                max_count=self.retry.max_count,
                delay_seconds=self.retry.delay_seconds,
            )
            await asyncio.sleep(self.retry.delay_seconds)

            if self._monitor.current().active:
                self.retry.reset()
                return await self._decide_handshake()

    async def _decide_handshake(self) -> LaunchPhase:
        self._set_phase(LaunchPhase.HANDSHAKE_DECISION)
        record = await self._store.load()
        if record.has_launched_before:
            return self._restore_stored(record)
        return await self._exchange_tokens()

    def _restore_stored(self, record: LaunchCompletionRecord) -> LaunchPhase:
        destination = record.stored_destination
        if not is_valid_destination(destination):
            # Nothing is emitted; the presentation layer stays on loading
            logger.warning("stored_destination_missing", stored_destination=destination)
            return self.phase

        logger.info("stored_destination_restored", destination=destination)
        self._emit_later(self.loading_target_updated, destination)
        return self._set_phase(LaunchPhase.RESTORE_STORED)

    async def _exchange_tokens(self) -> LaunchPhase:
        """Single-shot push token exchange raced against the timeout."""
        self._set_phase(LaunchPhase.TOKEN_EXCHANGE)
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future = loop.create_future()
        self._token_waiter = waiter

        loop.call_soon(self._platform.register_for_remote_notifications)
        self._att_token = self._fetch_attribution_token()
        timeout_handle = loop.call_later(
            self._token_timeout, self._on_token_timeout, waiter
        )

        try:
            source = await waiter
        finally:
            timeout_handle.cancel()
            self._token_waiter = None

        destination = build_destination(self._decoded_base(), self.device_payload())
        logger.info("token_exchange_resolved", source=source, destination=destination)
        if not is_valid_destination(destination):
            logger.warning("final_destination_invalid", destination=destination)
            return self._set_phase(LaunchPhase.COMPLETED)

        self._request_notification_permission()
        await self._store.save(
            LaunchCompletionRecord(
                has_launched_before=True,
                stored_destination=destination,
            )
        )
        self._emit_later(self.loading_target_updated, destination)
        return self._set_phase(LaunchPhase.COMPLETED)

    def _on_token_timeout(self, waiter: asyncio.Future) -> None:
        if waiter.done():
            return
        logger.info("token_exchange_timed_out", timeout_seconds=self._token_timeout)
        self._apns_token = SENTINEL_TOKEN
        waiter.set_result(_SOURCE_TIMEOUT)

    def _on_connectivity_restored(self, _: None) -> None:
        if not self.connectivity_alert_visible:
            return

        self._set_alert(False)
        self.retry.reset()
        logger.info("launch_restarting_after_restore")
        self._track(self.run())

    # ── Helpers ──────────────────────────────────────────────

    def _decoded_base(self) -> str:
        return decode_percent_ascii(self._base_destination)

    def _fetch_attribution_token(self) -> str:
        try:
            token = self._platform.fetch_attribution_token()
        except Exception as exc:
            logger.warning("attribution_token_unavailable", error=str(exc))
            return SENTINEL_TOKEN
        return token or SENTINEL_TOKEN

    def _request_notification_permission(self) -> None:
        try:
            self._platform.request_notification_authorization()
        except Exception as exc:
            logger.warning("notification_authorization_failed", error=str(exc))

    def _set_phase(self, phase: LaunchPhase) -> LaunchPhase:
        if phase != self.phase:
            logger.debug("launch_phase_changed", previous=self.phase.value, phase=phase.value)
        self.phase = phase
        return phase

    def _set_alert(self, visible: bool) -> None:
        if self.connectivity_alert_visible == visible:
            return
        self.connectivity_alert_visible = visible
        self.show_connectivity_alert.publish(visible)

    def _emit_later(self, channel: EventChannel[str], destination: str) -> None:
        self._track(self._deliver(channel, destination))

    async def _deliver(self, channel: EventChannel[str], destination: str) -> None:
        await asyncio.sleep(self._emit_delay)
        logger.info("launch_event_emitted", channel=channel.name, destination=destination)
        channel.publish(destination)

    def _track(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
