from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.cosmos import cosmos_database
from app.services.employee_service import employee_service
from app.services.merge_client import merge_client
from app.services.person_service import person_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await cosmos_database.initialize(settings)
        await employee_service.initialize(settings)
        await person_service.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize Cosmos DB services — continuing without DB")
    try:
        await merge_client.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize MergeClientService — continuing without HRIS provider")
    yield
    await merge_client.close()
    await person_service.close()
    await employee_service.close()
    await cosmos_database.close()


app = FastAPI(
    title="Workforce Sync API",
    description="HRIS employee reconciliation into Employee and Person records",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Workforce Sync API"}
