import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, folio_engine
from shared.response_wrapper import JsonResponseMiddleware
from .core.exception_handler import setup_exception_handlers
from . import models  # noqa: F401  registers every table on Base.metadata
from .router.assistant import assistant_router
from .router.billing import folios_router
from .router.financials import taxes_router
from .router.hospitality import rates_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    Base.metadata.create_all(bind=folio_engine)
    yield


app = FastAPI(title="Folio Service API", lifespan=lifespan)

app.add_middleware(JsonResponseMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Include routers
app.include_router(folios_router.router)
app.include_router(taxes_router.router)
app.include_router(rates_router.router)
app.include_router(assistant_router.router)


@app.get("/health")
def health():
    return {"service": "folio", "status": "ok"}
