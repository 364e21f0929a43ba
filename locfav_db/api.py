from __future__ import annotations

import logging

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .errors import InvalidTable, NotFound, StoreUnavailable
from .favorites import FavoriteRegistry
from .models import Record
from .settings import Settings
from .store import RecordStore

logger = logging.getLogger(__name__)


class RecordOut(BaseModel):
    position: int
    name: str
    tel: str
    address: str

    @classmethod
    def of(cls, rec: Record) -> RecordOut:
        return cls(**rec.to_dict())


class RecordPage(BaseModel):
    table: str
    items: list[RecordOut]
    total: int
    limit: int
    offset: int


class ToggleOut(BaseModel):
    table: str
    position: int
    result: str


def create_app(settings: Settings, store: RecordStore | None = None) -> FastAPI:
    app = FastAPI(title="locfav_db API", version="0.1.0")
    store = store or RecordStore.from_settings(settings)

    if settings.LOCFAV_API_CORS_ALLOW_ALL:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(InvalidTable)
    async def _invalid_table(_: Request, exc: InvalidTable):
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_table", "detail": str(exc), "allowed": list(exc.allowed)},
        )

    @app.exception_handler(NotFound)
    async def _not_found(_: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"error": "not_found", "detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def _unavailable(_: Request, exc: StoreUnavailable):
        logger.error("store unavailable: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"error": "store_unavailable", "detail": f"{exc.operation} failed; try again later"},
        )

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/")
    def root():
        return {
            "service": "locfav_db API",
            "ok": True,
            "endpoints": {
                "health": "/health",
                "tables": "/tables",
                "records": "/tables/{table}/records",
                "record": "/tables/{table}/records/{position}",
                "favorites": "/tables/{table}/favorites",
                "toggle": "/tables/{table}/favorites/{position}/toggle",
                "docs": "/docs",
            },
        }

    @app.get("/tables")
    def tables():
        return {"tables": list(store.tables), "default": settings.LOCFAV_DEFAULT_TABLE}

    @app.get("/tables/{table}/records", response_model=RecordPage)
    def list_records(
        table: str,
        limit: int = Query(default=settings.LOCFAV_PAGE_SIZE, ge=1, le=500),
        offset: int = Query(default=0, ge=0),
    ):
        items = store.list_records(table, limit=limit, offset=offset)
        return RecordPage(
            table=table,
            items=[RecordOut.of(r) for r in items],
            total=store.count(table),
            limit=limit,
            offset=offset,
        )

    @app.get("/tables/{table}/records/{position}", response_model=RecordOut)
    def get_record(table: str, position: int):
        return RecordOut.of(store.get_record(table, position))

    @app.get("/tables/{table}/favorites", response_model=list[RecordOut])
    def list_favorites(table: str):
        registry = FavoriteRegistry(store, table)
        return [RecordOut.of(r) for r in registry.list_favorites()]

    @app.post("/tables/{table}/favorites/{position}/toggle", response_model=ToggleOut)
    def toggle_favorite(table: str, position: int):
        registry = FavoriteRegistry(store, table)
        result = registry.toggle_favorite(position)
        return ToggleOut(table=table, position=position, result=result.value)

    return app
