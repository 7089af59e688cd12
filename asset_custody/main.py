from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from asset_custody.api.v1.router import api_router
from asset_custody.core.config import settings
from asset_custody.services.asset_store import asset_store

logger = logging.getLogger(__name__)

logging.getLogger("asset_custody").setLevel(settings.LOG_LEVEL.upper())


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await asset_store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize asset store, continuing without DB")
    yield
    await asset_store.close()


app = FastAPI(
    title="Asset Custody API",
    description="Asset ownership and lifecycle consistency",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Asset Custody API"}
