"""
PTB Registry Backend: FastAPI Server

Serves the tuberculosis case registry to the dashboard frontend:
1. Reads the registry sheet through a 5-minute cache
2. Derives status, latest labs and missing entries per patient
3. Filters the case list and computes the summary cards and charts
4. Forwards saves and disposition updates to the sheet, then drops the cache
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pythonjsonlogger import jsonlogger

from .clients import RegistryWriteError
from .config import RegistrySettings, load_settings
from .constants import reference_lists
from .filters import ACTIVE_CASES, ALL, RegistryQuery
from .registration import RegistrationError
from .registry_service import RegistryService, get_service
from .schemas import (
    AnalysisReport,
    DashboardStats,
    DispositionUpdate,
    Patient,
    PatientDetail,
    WriteResult,
)
from .stats import CardFilter

VERSION = "1.2.0"

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        # color a copy so the JSON file handler sees the plain record
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        record.msg = f"{color}{record.getMessage()}{self.RESET}"
        record.args = None
        return super().format(record)


def setup_logging(settings: RegistrySettings) -> logging.Logger:
    """Console, rotating JSON file and error-file handlers on the app logger."""

    logger = logging.getLogger("ptb-registry")
    logger.setLevel(logging.DEBUG)
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)s | [%(name)s] %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    os.makedirs(settings.log_dir, exist_ok=True)

    # Rotates daily, keeps 7 days of logs.
    file_handler = TimedRotatingFileHandler(
        os.path.join(settings.log_dir, "ptb_registry.log"),
        when="midnight", interval=1, backupCount=7, encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s %(lineno)d %(funcName)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    ))
    logger.addHandler(file_handler)

    error_handler = logging.FileHandler(
        os.path.join(settings.log_dir, "ptb_registry.error.log"), mode='a'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(error_handler)

    return logger


settings = load_settings()
logger = setup_logging(settings)


# ============================================================================
# APPLICATION
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info("  PTB REGISTRY BACKEND STARTING")
    logger.info(f"  Registry URL: {settings.api_url}")
    logger.info(f"  Cache TTL: {settings.cache_ttl_s}s ({settings.cache_dir or 'in-memory'})")
    logger.info("=" * 60)
    yield
    logger.info("PTB REGISTRY BACKEND SHUTTING DOWN")


app = FastAPI(
    title="PTB Registry Backend",
    description="Tuberculosis case registry: status, completeness and dashboard statistics",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root(service: RegistryService = Depends(get_service)):
    """Service info and cache state."""
    envelope = service.cache.peek()
    return {
        "service": "PTB Registry Backend",
        "status": "running",
        "version": VERSION,
        "cache": {
            "cached_at": envelope.timestamp.isoformat() if envelope else None,
            "patients": len(envelope.data) if envelope else 0,
            "fresh": service.cache.is_fresh(envelope) if envelope else False,
        },
    }


@app.get("/health")
async def health():
    """Simple health check endpoint."""
    logger.debug("Health check")
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/reference")
async def reference():
    """Dropdown vocabularies for the registration form."""
    return reference_lists()


# ============================================================================
# REGISTRY READS
# ============================================================================

@app.get("/patients")
async def list_patients(
    search: str = "",
    ward: str = ALL,
    outcome: str = ACTIVE_CASES,
    classification: str = ALL,
    card: Optional[CardFilter] = None,
    service: RegistryService = Depends(get_service),
):
    """Case list with the dashboard filters applied (all ANDed)."""
    query = RegistryQuery(
        search=search,
        ward=ward,
        outcome=outcome,
        classification=classification,
        card=card,
    )
    patients = await service.list_patients(query)
    logger.info(f"Listing patients: {len(patients)} match")
    return {
        "patients": [p.model_dump(mode="json") for p in patients],
        "count": len(patients),
    }


@app.get("/patients/{patient_id}", response_model=PatientDetail)
async def get_patient(patient_id: str, service: RegistryService = Depends(get_service)):
    """One patient with latest labs, status and missing entries."""
    detail = await service.get_detail(patient_id)
    if detail is None:
        logger.warning(f"Patient not found: {patient_id}")
        raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")
    return detail


@app.get("/stats", response_model=DashboardStats)
async def stats(service: RegistryService = Depends(get_service)):
    """Summary card counters."""
    return await service.get_stats()


@app.get("/analysis", response_model=AnalysisReport)
async def analysis(service: RegistryService = Depends(get_service)):
    """Chart-ready aggregates for the analysis view."""
    return await service.get_analysis()


# ============================================================================
# REGISTRY WRITES
# ============================================================================

@app.post("/patients", response_model=WriteResult)
async def save_patient(patient: Patient, service: RegistryService = Depends(get_service)):
    """Register a new case or replace an existing one."""
    try:
        saved = await service.save_patient(patient)
    except RegistrationError as e:
        logger.warning(f"Save rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except RegistryWriteError as e:
        logger.error(f"Save failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return WriteResult(id=saved.id, detail=saved.model_dump(mode="json"))


@app.patch("/patients/{patient_id}/disposition", response_model=WriteResult)
async def update_disposition(
    patient_id: str,
    update: DispositionUpdate,
    service: RegistryService = Depends(get_service),
):
    """Record the final disposition of a case."""
    try:
        updates = await service.update_final_disposition(
            patient_id, update.finalDisposition, update.finalDispositionDate
        )
    except RegistryWriteError as e:
        logger.error(f"Disposition update failed for {patient_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return WriteResult(id=patient_id, detail=updates)


@app.delete("/cache")
async def clear_cache(service: RegistryService = Depends(get_service)):
    """Drop the cached registry snapshot."""
    service.invalidate()
    logger.warning("Registry cache cleared")
    return {"status": "cleared"}
