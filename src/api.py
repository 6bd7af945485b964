# -*- coding: utf-8 -*-
import os, time
from typing import List, Optional
from collections import defaultdict, deque

from fastapi import FastAPI, Header, HTTPException, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import structlog
import yaml

from .logging_conf import setup_logging
from .classifier import JoblibClassifier
from .errors import ClassifierUnavailable, InvalidInput, InvalidRecord
from .schema import InputRecord
from .triage import TriageOrchestrator, TriageSettings
from .utils import load_config, cfg_get

logger = structlog.get_logger(__name__)

# -----------------------------------------------------------------------------
# FastAPI + logging
# -----------------------------------------------------------------------------
app = FastAPI(title="rca-labeler")
setup_logging()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------------------------------------------
# Security (API key опционален)
# -----------------------------------------------------------------------------
API_KEY = os.getenv("API_KEY", "")

def _check_api_key(x_api_key: Optional[str]):
    if API_KEY and x_api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")

# -----------------------------------------------------------------------------
# Простенький rate limit per IP
# -----------------------------------------------------------------------------
_hits: dict[str, deque] = defaultdict(deque)
_MAX_REQ_PER_MIN = int(os.getenv("RATE_LIMIT_PER_MIN", "120"))
def _rate_limit(ip: str):
    now = time.time()
    # IP без хитов за последнюю минуту выкидываем целиком
    for other in [k for k, d in _hits.items() if k != ip and (not d or now - d[-1] > 60)]:
        del _hits[other]
    dq = _hits[ip]; dq.append(now)
    while dq and now - dq[0] > 60:
        dq.popleft()
    if len(dq) > _MAX_REQ_PER_MIN:
        raise HTTPException(status_code=429, detail="Rate limit exceeded")

# -----------------------------------------------------------------------------
# Orchestrator: модель грузится при первом запросе, в тестах — dependency_overrides
# -----------------------------------------------------------------------------
_ORCHESTRATOR: Optional[TriageOrchestrator] = None

def get_orchestrator() -> TriageOrchestrator:
    global _ORCHESTRATOR
    if _ORCHESTRATOR is None:
        try:
            cfg = load_config()
            settings = TriageSettings.from_config(cfg)
        except FileNotFoundError as e:
            raise HTTPException(status_code=503, detail=f"Config not found: {e.filename}")
        except (yaml.YAMLError, InvalidInput) as e:
            raise HTTPException(status_code=503, detail=f"Bad config: {e}")
        clf = JoblibClassifier(cfg_get(cfg, "model.path", "models/area.joblib"))
        _ORCHESTRATOR = TriageOrchestrator(clf, settings)
    return _ORCHESTRATOR

def _guard(request: Request, x_api_key: Optional[str] = Header(default=None)):
    _check_api_key(x_api_key)
    _rate_limit(request.client.host if request.client else "unknown")

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------
class IssueIn(BaseModel):
    id: str = Field("", max_length=200)
    title: str = Field("", max_length=1000)
    description: str = Field("", max_length=20000)

    def to_record(self) -> InputRecord:
        return InputRecord(id=self.id, title=self.title, description=self.description)

class PredictionOut(BaseModel):
    label: str
    score: float
    original_index: int

class PredictResponse(BaseModel):
    id: str
    predictions: List[PredictionOut]

class TriageRequest(BaseModel):
    issues: List[IssueIn]
    skip_errors: bool = False

class TriageEntryOut(BaseModel):
    record_id: str
    title: str
    predictions: List[PredictionOut]
    recommended: bool
    error: Optional[str] = None

class TriageResponse(BaseModel):
    threshold: float
    entries: List[TriageEntryOut]

def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, ClassifierUnavailable):
        return HTTPException(status_code=503, detail=e.message)
    return HTTPException(status_code=400, detail=getattr(e, "message", str(e)))

# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}

@app.post("/predict", response_model=PredictResponse, dependencies=[Depends(_guard)])
def predict(issue: IssueIn, orch: TriageOrchestrator = Depends(get_orchestrator)):
    try:
        preds = orch.predict(issue.to_record())
    except (ClassifierUnavailable, InvalidRecord, InvalidInput) as e:
        raise _http_error(e)
    logger.info("predict", id=issue.id, top=preds[0].label if preds else None)
    return PredictResponse(id=issue.id, predictions=[PredictionOut(**p.to_dict()) for p in preds])

@app.post("/triage", response_model=TriageResponse, dependencies=[Depends(_guard)])
def triage(req: TriageRequest, orch: TriageOrchestrator = Depends(get_orchestrator)):
    try:
        entries = orch.triage([i.to_record() for i in req.issues],
                              on_error="skip" if req.skip_errors else "raise")
    except (ClassifierUnavailable, InvalidRecord, InvalidInput) as e:
        raise _http_error(e)
    return TriageResponse(
        threshold=orch.settings.threshold,
        entries=[TriageEntryOut(**e.to_dict()) for e in entries],
    )
