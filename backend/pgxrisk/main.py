from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pgxrisk import __version__
from pgxrisk.api.router import api_router
from pgxrisk.core.logging import setup_logging
from pgxrisk.services.pharmacogenomics.rule_loader import get_rule_table

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail at startup on a malformed rule table, not on the first request
    table = get_rule_table()
    logger.info("Serving %d drugs: %s", len(table), ", ".join(table.supported_drugs))
    yield


app = FastAPI(
    title="pgxrisk API",
    description="Pharmacogenomic drug risk classification from single-sample VCF genotypes",
    version=__version__,
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "pgxrisk"}
