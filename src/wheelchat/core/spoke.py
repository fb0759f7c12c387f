"""Client for the external spoke-length calculation service."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from wheelchat.configs.system import SpokeCalcConfig
from wheelchat.infra.http_utils import HttpClient
from wheelchat.infra.telemetry import SPAN_SPOKE_CALC, tracer

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-internal-secret"


class SpokeCalculationError(Exception):
    """The calculation service was unreachable or answered unusably."""


class SpokeLengths(BaseModel):
    """Left/right spoke lengths in millimetres."""

    left: float
    right: float


class SpokeCalculator:
    """Posts wheel geometry to the calculation service."""

    def __init__(self, config: SpokeCalcConfig, http: HttpClient | None = None) -> None:
        self._config = config
        self._http = http or HttpClient()

    async def calculate(self, geometry: dict[str, float]) -> SpokeLengths:
        """Return spoke lengths for *geometry* (the seven validated inputs)."""
        if not self._config.url:
            raise SpokeCalculationError("Spoke calculation service is not configured")

        with tracer.start_as_current_span(SPAN_SPOKE_CALC):
            try:
                data = await self._http.post_json(
                    self._config.url,
                    geometry,
                    timeout=self._config.timeout.total_seconds(),
                    headers={SECRET_HEADER: self._config.secret},
                )
            except (httpx.HTTPError, ValueError) as e:
                raise SpokeCalculationError(f"Calculation service failed: {e}") from e

            try:
                return SpokeLengths.model_validate(data)
            except ValidationError as e:
                raise SpokeCalculationError(
                    "Calculation service returned an unexpected payload"
                ) from e
