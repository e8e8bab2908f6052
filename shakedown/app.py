"""
FastAPI read surface over the show catalog.

Endpoints:
  GET    /api/shows                    - Search/list shows (?q=&limit=)
  GET    /api/shows/random             - Random show
  GET    /api/shows/on-this-day        - Shows on today's month-day (?date=YYYY-MM-DD)
  GET    /api/shows/range              - Shows between two dates (?start=&end=)
  GET    /api/shows/{identifier}       - One show by identifier or date fragment
  GET    /api/facets/{facet}           - Bucket sizes for a facet
  GET    /api/facets/{facet}/{value}   - Shows in a facet bucket
  GET    /api/stats                    - Catalog summary
  GET    /api/favorites                - Favorite shows
  POST   /api/favorites/{identifier}   - Add a favorite
  DELETE /api/favorites/{identifier}   - Remove a favorite

The catalog and listening history are built once in the lifespan handler and
kept on ``app.state``; ``create_app`` accepts prebuilt instances for tests.
"""

import asyncio
import datetime
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .catalog import Catalog
from .config import Settings, configure_logging
from .exceptions import NotFoundError
from .history import ListeningHistory
from .loader import load_files
from .models import Show
from .stats import build_catalog_summary


def _show_json(show: Show) -> dict:
    data = show.model_dump(mode="json")
    data["title"] = show.title
    data["date"] = show.date.isoformat() if show.date else None
    return data


def _catalog(request: Request) -> Catalog:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Catalog not loaded")
    return catalog


def _history(request: Request) -> ListeningHistory:
    return request.app.state.history


def _get_or_404(catalog: Catalog, identifier: str) -> Show:
    show = catalog.get_show(identifier)
    if show is None:
        raise NotFoundError(identifier)
    return show


def create_app(
    settings: Optional[Settings] = None,
    catalog: Optional[Catalog] = None,
    history: Optional[ListeningHistory] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        app_instance.state.settings = settings
        app_instance.state.history = history or ListeningHistory()
        if catalog is not None:
            app_instance.state.catalog = catalog
        else:
            app_instance.state.catalog = await asyncio.to_thread(load_files, settings)
        logger.info(f"Show catalog ready. {len(app_instance.state.catalog)} shows loaded.")
        yield

    app = FastAPI(title="Shakedown Shuffle", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    # ------------------------------------------------------------------
    # Shows
    # ------------------------------------------------------------------

    @app.get("/api/shows")
    async def list_shows(request: Request, q: str = "", limit: int = 50):
        shows = _catalog(request).search(q, limit=min(max(limit, 1), 500))
        return JSONResponse([_show_json(s) for s in shows])

    @app.get("/api/shows/random")
    async def random_show(request: Request):
        show = _catalog(request).random_show()
        if show is None:
            raise NotFoundError("random")
        return JSONResponse(_show_json(show))

    @app.get("/api/shows/on-this-day")
    async def on_this_day(request: Request, date: Optional[str] = None):
        catalog = _catalog(request)
        try:
            shows = catalog.shows_on_this_day(date or datetime.date.today())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return JSONResponse([_show_json(s) for s in shows])

    @app.get("/api/shows/range")
    async def shows_in_range(request: Request, start: str, end: str):
        try:
            shows = _catalog(request).shows_in_range(start, end)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return JSONResponse([_show_json(s) for s in shows])

    @app.get("/api/shows/{identifier}")
    async def get_show(request: Request, identifier: str):
        show = _get_or_404(_catalog(request), identifier)
        data = _show_json(show)
        data["is_favorite"] = _history(request).is_favorite(show.identifier)
        return JSONResponse(data)

    # ------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------

    @app.get("/api/facets/{facet}")
    async def facet_buckets(request: Request, facet: str):
        buckets = _catalog(request).facet(facet)
        return {value: len(ids) for value, ids in sorted(buckets.items())}

    @app.get("/api/facets/{facet}/{value}")
    async def facet_shows(request: Request, facet: str, value: str):
        shows = _catalog(request).shows_for_facet(facet, value)
        return JSONResponse([_show_json(s) for s in shows])

    @app.get("/api/stats")
    async def catalog_stats(request: Request):
        return JSONResponse(build_catalog_summary(_catalog(request)))

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    @app.get("/api/favorites")
    async def list_favorites(request: Request):
        shows = _history(request).favorites(_catalog(request))
        return JSONResponse([_show_json(s) for s in shows])

    @app.post("/api/favorites/{identifier}")
    async def add_favorite(request: Request, identifier: str):
        show = _get_or_404(_catalog(request), identifier)
        _history(request).add_favorite(show.identifier)
        return {"success": True, "identifier": show.identifier}

    @app.delete("/api/favorites/{identifier}")
    async def remove_favorite(request: Request, identifier: str):
        show = _get_or_404(_catalog(request), identifier)
        _history(request).remove_favorite(show.identifier)
        return {"success": True, "identifier": show.identifier}

    return app


app = create_app()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info(f"Starting Shakedown Shuffle catalog on port {settings.port}")
    uvicorn.run(
        "shakedown.app:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
