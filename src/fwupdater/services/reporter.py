"""Outcome reporting service for host callbacks."""

import logging
from typing import Optional

import httpx

from fwupdater.api.models import ReportPayload
from fwupdater.models.status import StageEnum


class ReportService:
    """Notifies the host service when an update run ends."""

    def __init__(self, host_url: str = "http://localhost:9080"):
        """Initialize report service.

        Args:
            host_url: Base URL of the host service (default: http://localhost:9080)
        """
        self.logger = logging.getLogger("fwupdater.reporter")
        self.host_url = host_url
        self.report_endpoint = f"{host_url}/api/v1.0/firmware/report"

    async def report_outcome(
        self,
        device_id: str,
        stage: StageEnum,
        message: str,
        error: Optional[str] = None,
    ) -> None:
        """Send terminal outcome to the host service.

        Args:
            device_id: Device that was updated
            stage: Terminal stage (completed/failed/cancelled)
            message: Human-readable status description
            error: Error message if stage == failed

        Note:
            Failures are logged but not raised so reporting never changes
            the outcome of an update
        """
        payload = ReportPayload(
            device_id=device_id,
            stage=stage,
            message=message,
            error=error,
        )

        self.logger.debug(f"Reporting to host: device={device_id}, stage={stage.value}")

        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.post(
                    self.report_endpoint,
                    json=payload.model_dump(mode="json"),
                )
                response.raise_for_status()
                self.logger.debug("Report sent successfully")

        except httpx.HTTPError as e:
            self.logger.warning(f"Failed to report outcome to host: {e}")
        except Exception as e:
            self.logger.error(
                f"Unexpected error reporting to host: {e}",
                exc_info=True,
            )
