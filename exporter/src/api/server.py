#!/usr/bin/env python3
"""
FastAPI server module for exporter health endpoints
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from core.aggregator import MetricsAggregator

logger = logging.getLogger(__name__)


class ExporterStatus(BaseModel):
    cluster_id: str
    aggregation_interval: float
    aggregator_running: bool
    tracked_series: int
    timestamp: str
    config: Optional[Dict[str, Any]] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class APIServer:
    """FastAPI server for liveness, readiness and status"""

    def __init__(self, aggregator: MetricsAggregator, config: Optional[Dict[str, Any]] = None):
        """
        Initialize API server

        Args:
            aggregator: Metrics aggregator whose loop drives readiness
            config: Sanitized configuration dictionary reported by /status
        """
        self.aggregator = aggregator
        self.config = config
        self.app = FastAPI(
            title="CPMS Metrics Exporter",
            description="Health endpoints for the controlplanemachineset metrics exporter",
            version="0.1.0"
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes"""

        @self.app.get("/healthz")
        async def healthz():
            """Liveness probe"""
            return {"status": "ok", "timestamp": _now()}

        @self.app.get("/readyz")
        async def readyz():
            """Readiness probe, ready once the aggregation loop runs"""
            ready = self.aggregator.is_running
            return JSONResponse(
                content={
                    "status": "ready" if ready else "not ready",
                    "timestamp": _now()
                },
                status_code=200 if ready else 503
            )

        @self.app.get("/status", response_model=ExporterStatus)
        async def status():
            """Exporter status"""
            return ExporterStatus(
                cluster_id=self.aggregator.cluster_id,
                aggregation_interval=self.aggregator.aggregation_interval,
                aggregator_running=self.aggregator.is_running,
                tracked_series=len(self.aggregator.store),
                timestamp=_now(),
                config=self.config
            )

    def run(self, host: str = "0.0.0.0", port: int = 8081):
        """Run the API server"""
        logger.info(f"Starting API server on {host}:{port}")
        uvicorn.run(self.app, host=host, port=port, log_level="warning")
