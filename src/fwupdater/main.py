"""FastAPI application for the device firmware updater."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from fwupdater.config import UpdaterConfig
from fwupdater.utils.logging import setup_logger
from fwupdater.services.orchestrator import FirmwareUpdateOrchestrator
from fwupdater.services.probe import DeviceProbe
from fwupdater.services.reporter import ReportService
from fwupdater.services.runner import UpdateRunner
from fwupdater.services.state_manager import StateManager
from fwupdater.transport.http import HttpDeviceTransport
from fwupdater.api.routes import router


def build_runner(config: UpdaterConfig) -> UpdateRunner:
    """Wire transport, orchestrator and reporter from configuration."""
    transport = HttpDeviceTransport(
        bridge_url=config.bridge_url,
        request_timeout=config.request_timeout,
        install_timeout=config.install_timeout,
    )

    def orchestrator_factory(on_stage):
        return FirmwareUpdateOrchestrator(
            probe=DeviceProbe(backoff=config.probe_backoff),
            settle_delay=config.settle_delay,
            on_stage=on_stage,
        )

    reporter = ReportService(host_url=config.report_url) if config.report_url else None
    return UpdateRunner(
        transport,
        orchestrator_factory=orchestrator_factory,
        state_manager=StateManager(),
        reporter=reporter,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown hooks.

    Startup:
    - Load configuration
    - Initialize logger
    - Build the update runner

    Shutdown:
    - Cancel any update run still in progress
    """
    config = UpdaterConfig.load()
    logger = setup_logger(
        "fwupdater",
        config.log_file,
        level=config.log_level,
        component_levels=config.component_log_levels,
    )
    logger.info("Firmware updater starting up...")

    app.state.config = config
    app.state.runner = build_runner(config)

    logger.info(f"Firmware updater ready on port {config.port}")

    yield

    logger.info("Firmware updater shutting down...")
    handle = app.state.runner.active
    if handle is not None:
        logger.warning(f"Cancelling update of {handle.device_id} on shutdown")
        handle.cancel()
        await handle.wait()


app = FastAPI(
    title="Device Firmware Updater",
    description="Drives connected devices through bootloader and OS update steps",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "fwupdater", "version": "1.0.0"}


def main():
    """Main entry point for running the server."""
    config = UpdaterConfig.load()
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
