"""FastAPI application exposing a live HangulFinder engine."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from hangulfinder.index.engine import HangulSearchEngine

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 50


class SearchPayload(BaseModel):
    query: str
    limit: int = 10


class ThresholdPayload(BaseModel):
    value: float


def create_app(engine: HangulSearchEngine, *, build_on_startup: bool = True) -> FastAPI:
    """Wrap ``engine`` in a web app; the engine is built when the app starts."""
    app = FastAPI(title="HangulFinder Web", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        if build_on_startup:
            await engine.build()

    @app.post("/search")
    async def search_documents(payload: SearchPayload) -> Dict[str, Any]:
        query = payload.query.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Empty query")

        limit = max(1, min(payload.limit, MAX_LIMIT))
        # Content for the top hits is loaded in the background.
        hits = engine.search(query, limit=limit)
        return {"results": [asdict(hit) for hit in hits]}

    @app.get("/documents")
    async def list_documents() -> Dict[str, Any]:
        """List every indexed document."""
        documents = [
            {
                "path": record.path,
                "display": record.display,
                "size": record.size,
                "mtime": record.mtime,
                "content_loaded": record.content_loaded,
            }
            for record in engine.records
        ]
        return {"documents": documents, "stats": {"document_count": engine.count()}}

    @app.post("/rebuild")
    async def rebuild_index() -> Dict[str, Any]:
        count = await engine.build()
        return {"status": "ok", "document_count": count}

    @app.post("/threshold")
    async def update_threshold(payload: ThresholdPayload) -> Dict[str, Any]:
        try:
            engine.set_threshold(payload.value)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"status": "ok", "threshold": payload.value}

    @app.delete("/documents")
    async def clear_documents() -> Dict[str, str]:
        """Drop every indexed document and cached preview."""
        engine.clear()
        LOGGER.info("Index cleared")
        return {"status": "ok"}

    return app
