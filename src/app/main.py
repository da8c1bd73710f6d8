"""FIREMAP - Wildfire hotspot monitoring over farm boundaries.

Main FastAPI application.
"""

import asyncio
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import settings
from app.routers.map import router as map_router
from app.routers.proxy import router as proxy_router
from firemap.boundaries import BoundarySource, load_boundaries
from firemap.hotspots import (
    HotspotFetcher,
    OverlayReconciler,
    RefreshScheduler,
    build_sources,
)
from firemap.layers import MapView, create_map_view

_INPROCESS_BASE_URL = "http://firemap.internal"
_INPROCESS_PROXY_PATH = "/api/inpe-kml"


# ---------------------------------------------------------------------------
# Subsystem startup helpers
# ---------------------------------------------------------------------------

def _create_map_view() -> MapView:
    """Map with base layers and the static farm boundaries."""
    map_view = create_map_view(
        center=(settings.map_center_lat, settings.map_center_lng),
        zoom=settings.map_zoom,
    )
    boundaries = [BoundarySource(path=b.path, name=b.name) for b in settings.boundaries]
    layers = load_boundaries(map_view, boundaries)
    logger.info(f"Farm boundaries: {len(layers)}/{len(boundaries)} loaded")
    return map_view


def _create_fetch_client(app: FastAPI) -> tuple[httpx.AsyncClient, str]:
    """HTTP client and proxy URL the refresh engine fetches through.

    Without an explicit PROXY_URL the proxy route is called in-process over
    ASGI, so fetches still go through the proxy without a network hop.
    """
    if settings.proxy_url:
        return httpx.AsyncClient(), settings.proxy_url
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url=_INPROCESS_BASE_URL,
    )
    return client, _INPROCESS_PROXY_PATH


def _start_hotspot_refresh(app: FastAPI, map_view: MapView, client: httpx.AsyncClient, proxy_url: str):
    """Wire fetcher -> reconciler -> scheduler and start the first refresh."""
    sources = build_sources(settings.inpe_sources)
    fetcher = HotspotFetcher(
        client=client,
        proxy_url=proxy_url,
        allowed_prefixes=settings.proxy_allowed_prefixes,
        timeout=settings.fetch_timeout,
    )
    reconciler = OverlayReconciler(
        map_view=map_view,
        fetcher=fetcher,
        sources=sources,
        overlay_name=settings.hotspot_overlay_name,
        retain_stale_on_failure=settings.retain_stale_on_failure,
    )
    scheduler = RefreshScheduler(reconciler.run_cycle, settings.refresh_interval)
    app.state.reconciler = reconciler
    app.state.scheduler = scheduler
    scheduler.start()
    logger.info(f"Hotspot sources: {', '.join(s.source_id for s in sources) or 'none'}")
    return scheduler


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info("  FIREMAP v0.1.0 - INITIALIZING")
    logger.info("=" * 60)

    map_view = _create_map_view()
    app.state.map_view = map_view

    client, proxy_url = _create_fetch_client(app)
    scheduler = _start_hotspot_refresh(app, map_view, client, proxy_url)

    logger.info("=" * 60)
    logger.info("  FIREMAP ONLINE")
    logger.info("=" * 60)

    yield

    logger.info("FIREMAP shutting down...")
    scheduler.stop()
    map_view.close()
    try:
        await asyncio.wait_for(scheduler.wait_idle(), timeout=settings.fetch_timeout)
    except asyncio.TimeoutError:
        logger.warning("Hotspot refresh still in flight at shutdown")
    await client.aclose()


# Create FastAPI app
app = FastAPI(
    title="FIREMAP",
    description="Wildfire hotspot monitoring over farm boundaries",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(proxy_router)
app.include_router(map_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": "0.1.0",
        "system": "FIREMAP",
    }


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    main()
