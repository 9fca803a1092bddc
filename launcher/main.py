"""
launcher/main.py

FastAPI application entry point for the launch gate service.
Wires the connectivity monitor, completion store and orchestrator once per
process and starts the launch flow on startup.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from config import settings
from db.models import init_models
from launcher.orchestrator import LaunchOrchestrator
from launcher.presentation import LaunchScreen
from launcher.routers.launch import router as launch_router
from launcher.services.connectivity import ConnectivityMonitor
from launcher.services.persistence import LaunchStateStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle: startup and shutdown."""
    logger.info("launcher_starting", database_url=settings.database_url)
    await init_models()

    monitor = ConnectivityMonitor()
    monitor.bind()
    orchestrator = LaunchOrchestrator(
        unlock_date=settings.unlock_date,
        base_destination=settings.base_destination,
        monitor=monitor,
        store=LaunchStateStore(),
    )
    app.state.monitor = monitor
    app.state.orchestrator = orchestrator
    app.state.screen = LaunchScreen(orchestrator)

    launch_task = asyncio.create_task(orchestrator.run())
    yield

    launch_task.cancel()
    await asyncio.gather(launch_task, return_exceptions=True)
    await orchestrator.shutdown()
    logger.info("launcher_shutting_down", phase=orchestrator.phase.value)


app = FastAPI(
    title="Launch Gate",
    description="Date-gated first-launch handshake and destination selection",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(launch_router)
