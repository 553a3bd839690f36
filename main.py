# ============================================================================
# DEPENDENCY MONITOR - HOST APPLICATION
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Minimal host wiring a DependencyMonitor into a FastAPI app
# CREATED: 19 OCT 2026
# ============================================================================
"""
Dependency Monitor Host Application

FastAPI application that:
1. Creates one DependencyMonitor from environment defaults
2. Runs the periodic check loop for the lifetime of the app
3. Mounts the dependency router (/dependencies, /metrics)

Real deployments register their own checks in register_checks(); the
built-in "event-loop" check only reports scheduler lag of this process.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import asyncio
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import get_defaults
from core.logging import configure_logging, get_logger
from core.models import CheckDefinition, CheckResult, GenericCheckDetails
from health import DependencyMonitor, create_dependency_router

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Loop lag above this is reported as WARNING
EVENT_LOOP_LAG_WARNING_MS = float(os.environ.get("EVENT_LOOP_LAG_WARNING_MS", "250"))


async def check_event_loop() -> CheckResult:
    """Measure how late a zero-length sleep resumes."""
    start = time.perf_counter()
    await asyncio.sleep(0)
    lag_ms = (time.perf_counter() - start) * 1000
    if lag_ms > EVENT_LOOP_LAG_WARNING_MS:
        return CheckResult.warning(f"Event loop lag {lag_ms:.0f}ms")
    return CheckResult.ok()


def register_checks(monitor: DependencyMonitor) -> None:
    """Register the dependency checks this host reports on."""
    monitor.register(CheckDefinition(
        name="event-loop",
        description="Host process event loop responsiveness",
        impact="All endpoints respond slowly",
        details=GenericCheckDetails(notes="In-process check"),
        check_fn=check_event_loop,
    ))


monitor = DependencyMonitor(defaults=get_defaults())
register_checks(monitor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Starts the check loop on startup, stops it and drains on shutdown.
    """
    logger.info(f"Starting Dependency Monitor v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    await monitor.start()
    logger.info(f"Dependency monitor started ({len(monitor.registry)} checks registered)")

    yield

    logger.info("Shutting down Dependency Monitor...")
    await monitor.stop()
    await monitor.drain()
    logger.info("Dependency Monitor stopped")


# Create FastAPI app
app = FastAPI(
    title="Dependency Monitor",
    description=f"Epoch {EPOCH} cached dependency health monitoring",
    version=__version__,
    lifespan=lifespan,
)

# Include dependency routes (no prefix - /dependencies, /metrics)
app.include_router(create_dependency_router(monitor))


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Dependency Monitor",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running" if monitor.is_running else "stopped",
        "monitor": monitor.get_stats(),
    }
