from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .config import ProxySettings
from .services.aggregator import Aggregator

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


def create_app(settings: ProxySettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Baut die FastAPI-App für die gegebenen Settings.

    Die Settings sind ein unveränderlicher Snapshot; jeder Request liest
    nur daraus und baut seine Fetches selbst auf.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Loggt die aktive Konfiguration beim Server-Start"""
        logger.info(f"Configured to fetch from URLs: {list(settings.upstream_urls)}")
        if settings.prefixes:
            logger.info(f"Configured to filter metrics by prefixes: {list(settings.prefixes)}")
        else:
            logger.info("No prefixes specified, all metrics will be included.")
        logger.info(f"Serving aggregated metrics on {settings.metrics_path}")
        yield
        logger.info("Metrics proxy stopped")

    app = FastAPI(title="Metrics Proxy", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    aggregator = Aggregator(
        targets=settings.upstream_urls,
        prefixes=settings.prefixes,
        verbose=settings.verbose,
        transport=transport
    )
    app.state.aggregator = aggregator

    # Health Check Endpoints
    @app.get("/health/ready")
    async def health_ready():
        """Readiness check"""
        return {"status": "ready", "timestamp": datetime.now().isoformat()}

    @app.get("/health/live")
    async def health_live():
        """Liveness check endpoint"""
        return {"status": "alive", "timestamp": datetime.now().isoformat()}

    @app.get(settings.metrics_path, response_class=PlainTextResponse)
    async def metrics_endpoint(request: Request):
        """
        Fetcht alle Upstreams parallel und liefert die kombinierten Bodies.

        - 200: mindestens ein Upstream erfolgreich (fehlgeschlagene entfallen)
        - 500: keine Upstreams konfiguriert oder alle fehlgeschlagen
        """
        remote_addr = None
        if request.client:
            remote_addr = f"{request.client.host}:{request.client.port}"

        result, status_code = await aggregator.aggregate(
            request_path=request.url.path,
            remote_addr=remote_addr
        )

        return PlainTextResponse(
            content=result.body,
            status_code=status_code,
            headers={"Content-Type": TEXT_CONTENT_TYPE}
        )

    return app
