from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from osint_investigator.core.errors import (
    InvestigationNotFoundError,
    OsintError,
    PersistenceError,
    ProviderNotConfiguredError,
    UnknownAgentError,
    ValidationError,
)
from osint_investigator.core.orchestrator import InvestigationOrchestrator
from osint_investigator.core.state import GeneratedQuery, RetryRequest, SearchParameters
from osint_investigator.observability.metrics import attach_metrics
from osint_investigator.utils import get_logger

logger = get_logger(__name__)

_orchestrator: InvestigationOrchestrator | None = None


def get_orchestrator() -> InvestigationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = InvestigationOrchestrator.from_settings()
    return _orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _orchestrator is not None:
        await _orchestrator.aclose()


app = FastAPI(title="OSINT Investigation Orchestrator API", lifespan=lifespan)

# Attach Prometheus /metrics endpoint to FastAPI app
attach_metrics(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratedQueryModel(_CamelModel):
    query: str
    priority: int = 0
    total_value: int = 0
    template: str = ""


class SearchDataModel(_CamelModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    username: str | None = None
    address: str | None = None
    keywords: str | None = None
    known_relatives: str | None = None
    generated_queries: list[GeneratedQueryModel] = Field(default_factory=list)

    def to_parameters(self) -> SearchParameters:
        return SearchParameters(
            full_name=self.full_name,
            email=self.email,
            phone=self.phone,
            username=self.username,
            address=self.address,
            keywords=self.keywords,
            known_relatives=self.known_relatives,
            generated_queries=[
                GeneratedQuery(query.query, query.priority, query.total_value, query.template)
                for query in self.generated_queries
            ],
        )


class StartInvestigationRequest(SearchDataModel):
    generate_queries: bool = False


class RetryAgentRequest(_CamelModel):
    investigation_id: str
    agent_type: str
    search_data: SearchDataModel


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.exception_handler(OsintError)
async def osint_error_handler(request: Request, exc: OsintError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _error(422, exc)
    if isinstance(exc, UnknownAgentError):
        return _error(400, exc)
    if isinstance(exc, InvestigationNotFoundError):
        return _error(404, exc)
    if isinstance(exc, ProviderNotConfiguredError):
        return _error(503, exc)
    if isinstance(exc, PersistenceError):
        logger.error("api.persistence_error", path=request.url.path, error=str(exc))
        return _error(502, exc)
    logger.error("api.unhandled_osint_error", path=request.url.path, error=str(exc))
    return _error(500, exc)


@app.post("/api/investigations")
async def start_investigation(
    req: StartInvestigationRequest,
    orchestrator: InvestigationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    result = await orchestrator.start(req.to_parameters(), generate_queries=req.generate_queries)
    return result.to_dict()


@app.post("/api/investigations/retry")
async def retry_agent(
    req: RetryAgentRequest,
    orchestrator: InvestigationOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    result = await orchestrator.retry(
        RetryRequest(
            investigation_id=req.investigation_id,
            agent_type=req.agent_type,
            search_data=req.search_data.to_parameters(),
        )
    )
    return JSONResponse(status_code=200 if result.success else 502, content=result.to_dict())


@app.get("/api/investigations/{investigation_id}")
async def get_investigation(
    investigation_id: str,
    orchestrator: InvestigationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    investigation = await orchestrator.store.get_investigation(investigation_id)
    if investigation is None:
        raise InvestigationNotFoundError(f"Investigation {investigation_id} does not exist")
    return investigation.to_record()


@app.get("/api/investigations/{investigation_id}/findings")
async def list_findings(
    investigation_id: str,
    orchestrator: InvestigationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    investigation = await orchestrator.store.get_investigation(investigation_id)
    if investigation is None:
        raise InvestigationNotFoundError(f"Investigation {investigation_id} does not exist")
    findings = await orchestrator.store.list_findings(investigation_id)
    return {
        "investigation": investigation.to_record(),
        "findings": [finding.to_record() for finding in findings],
    }
