# backend/clinassist/main.py
import logging
import threading
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinassist.config import get_settings
from clinassist.exceptions import AuditStoreError, ClinicalAssistError, IntakeValidationError
from clinassist.logging_config import setup_logging
from clinassist.schemas import AnalysisResponse, AuditSummary, Intake, RiskLevel, ValidationFailure
from clinassist.services.audit import build_audit_store
from clinassist.services.confidence import HeuristicConfidenceProvider, RemoteConfidenceProvider
from clinassist.services.pipeline import ClinicalAnalyzer

settings = get_settings()
setup_logging(settings.log_level)

log = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_analyzer: Optional[ClinicalAnalyzer] = None
_analyzer_lock = threading.Lock()


def build_analyzer(cfg) -> ClinicalAnalyzer:
    if cfg.confidence_provider_url:
        provider = RemoteConfidenceProvider(
            url=cfg.confidence_provider_url,
            api_key=cfg.confidence_api_key,
            timeout=cfg.confidence_timeout_seconds,
        )
    else:
        provider = HeuristicConfidenceProvider()
    return ClinicalAnalyzer(audit_store=build_audit_store(cfg), confidence_provider=provider)


def get_analyzer() -> ClinicalAnalyzer:
    """Process-wide analyzer; tests swap it via app.dependency_overrides."""
    global _analyzer
    if _analyzer is None:
        # sync dependencies run in the threadpool; one analyzer per process
        with _analyzer_lock:
            if _analyzer is None:
                _analyzer = build_analyzer(settings)
                log.info("Analyzer ready (audit backend=%s)", _analyzer.audit_store.backend)
    return _analyzer


@app.exception_handler(ClinicalAssistError)
async def clinical_error_handler(request: Request, exc: ClinicalAssistError):
    status = 400
    if isinstance(exc, AuditStoreError):
        status = 503
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.get("/health")
def health():
    return {"status": "healthy", "service": settings.app_name, "environment": settings.environment}


@app.post(
    "/api/analyze",
    response_model=AnalysisResponse,
    responses={400: {"model": ValidationFailure}},
)
def route_analyze(intake: Intake, analyzer: ClinicalAnalyzer = Depends(get_analyzer)):
    """
    payload example:
    {
      "patient_name": "Juan Dela Cruz", "age": 45, "weight": 78, "height": 175,
      "bp": "135/88", "conditions": ["Hypertension"], "allergies": [],
      "medications": [{"name": "Amlodipine", "dosage": "5mg", "frequency": "Daily"}],
      "complaint": "ED"
    }
    """
    resp = analyzer.analyze(intake)
    if resp.risk_level == RiskLevel.INVALID:
        raise IntakeValidationError(resp.validation_errors)
    return resp


@app.get("/api/audit", response_model=List[AuditSummary])
def route_audit(
    limit: int = Query(default=10, description="Out-of-range values fall back to the default page"),
    analyzer: ClinicalAnalyzer = Depends(get_analyzer),
):
    """List recent analyses, most recent first."""
    return analyzer.latest_audits(limit)
