"""
launcher/routers/launch.py

HTTP bridge between the launch orchestrator and its collaborators.
- GET  /launch/state         current screen state for the presentation layer
- POST /launch/connectivity  reachability update from the platform listener
- POST /launch/push-token    push token delivered after registration
- POST /launch/run           fresh top-level launch attempt
"""

import asyncio

import structlog
from fastapi import APIRouter, Request

from launcher.orchestrator import LaunchOrchestrator
from launcher.presentation import LaunchScreen
from launcher.schemas import LaunchStateResponse, NetworkPath, PushTokenRequest
from launcher.services.connectivity import ConnectivityMonitor

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/launch")

# Keeps scheduled runs referenced until they finish
_background_runs: set[asyncio.Task] = set()


def _orchestrator(request: Request) -> LaunchOrchestrator:
    return request.app.state.orchestrator


@router.get("/state")
async def get_launch_state(request: Request) -> LaunchStateResponse:
    """Return what the presentation layer should currently show."""
    orchestrator = _orchestrator(request)
    screen: LaunchScreen = request.app.state.screen
    return LaunchStateResponse(
        **screen.state.model_dump(),
        phase=orchestrator.phase,
        has_launched_before=await orchestrator.has_launched_before(),
    )


@router.post("/connectivity")
async def update_connectivity(path: NetworkPath, request: Request) -> dict[str, bool]:
    """Apply a reachability observation; we are already on the owning loop."""
    monitor: ConnectivityMonitor = request.app.state.monitor
    monitor.apply(path)
    return {"active": monitor.current().active}


@router.post("/push-token")
async def receive_push_token(body: PushTokenRequest, request: Request) -> dict[str, str]:
    """Deliver the push token to a pending token exchange, if any."""
    _orchestrator(request).receive_push_token(body.token)
    return {"status": "received"}


@router.post("/run", status_code=202)
async def trigger_launch(request: Request) -> dict[str, str]:
    """Schedule a fresh launch attempt without waiting for it."""
    orchestrator = _orchestrator(request)
    task = asyncio.create_task(orchestrator.run())
    _background_runs.add(task)
    task.add_done_callback(_background_runs.discard)
    logger.info("launch_run_scheduled", phase=orchestrator.phase.value)
    return {"status": "scheduled"}
