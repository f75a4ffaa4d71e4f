"""
Conflict Ingestion: API Server
==============================

Read-only API serving the fused conflict event set.

Endpoints:
- GET /health                     -> Service status, cache ages, store size
- GET /api/conflicts              -> Fused events (always 200)
- GET /api/conflicts/categories   -> Category labels and colors

Usage:
    uvicorn conflict_ingestion.api.server:app --reload
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional
import logging

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..contracts import ConflictSnapshot, iso_timestamp
from ..service import ConflictService, create_service
from .mapper import build_filters, cache_control_for, map_categories, map_snapshot_to_dto


logger = logging.getLogger(__name__)


def create_app(service: Optional[ConflictService] = None) -> FastAPI:
    """
    Build the FastAPI app.

    The service owns all cache and store state; pass one in to share or
    stub it, otherwise it is built from the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.service = service or create_service()
        logger.info("Conflict service ready (config=%s)", app.state.service.config)
        yield
        logger.info("Shutting down conflict service")
        app.state.service = None

    app = FastAPI(
        title="Conflict Ingestion API",
        version="0.1.0",
        description="Fused conflict events from the GeoFeed and ExportFeed upstreams",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    def _service(request: Request) -> ConflictService:
        service_instance = getattr(request.app.state, "service", None)
        if service_instance is None:
            raise HTTPException(status_code=503, detail="Service not initialized")
        return service_instance

    @app.get("/health")
    async def health_check(request: Request):
        return {"status": "online", **_service(request).status()}

    @app.get("/api/conflicts")
    async def get_conflicts(
        request: Request,
        search: str = "",
        category: List[str] = Query(default=[]),
        timeframe: Optional[str] = None
    ):
        """
        Fused conflict events.

        Never fails: upstream problems collapse into `partial: true`
        with whatever data is still available.
        """
        service_instance = getattr(request.app.state, "service", None)
        if service_instance is None:
            logger.warning("Conflict request before service startup; serving empty partial")
            now = datetime.now(timezone.utc)
            snapshot = ConflictSnapshot(events=[], timestamp=iso_timestamp(now), partial=True)
        else:
            now = service_instance.now()
            try:
                snapshot = await service_instance.get_conflicts()
            except Exception:
                logger.exception("Conflict refresh failed unexpectedly")
                snapshot = service_instance.empty_snapshot()

        filters = build_filters(search, category, timeframe)
        body = map_snapshot_to_dto(snapshot, filters, now)

        return JSONResponse(
            content=body,
            status_code=200,
            headers={"Cache-Control": cache_control_for(snapshot)}
        )

    @app.get("/api/conflicts/categories")
    async def get_categories():
        return {"categories": map_categories()}

    return app


app = create_app()
