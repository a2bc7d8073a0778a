"""
FastAPI application exposing test generation and execution over HTTP.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.middleware.base import BaseHTTPMiddleware

from api_probe.config import settings
from api_probe.errors import NotFoundError, SpecError
from api_probe.logging_setup import setup_logging
from api_probe.service import TestingService, summarize_cases

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0


class GenerateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    api_spec: Any = None


class RunRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    base_url: str | None = None
    generation_id: str | None = None
    api_spec: Any = None


class TimingMiddleware(BaseHTTPMiddleware):
    """Log requests that take longer than SLOW_REQUEST_SECONDS."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time
        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(f"Slow request: {request.method} {request.url.path} took {duration:.2f}s")
        return response


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _service(request: Request) -> TestingService:
    return request.app.state.service


router = APIRouter()


@router.get("/debug")
async def debug(request: Request):
    """Store sizes and the available routes."""
    service = _service(request)
    return {
        "status": "ok",
        "storedData": {
            "generatedTestCases": len(service.generations),
            "testResults": len(service.results),
        },
        "routes": [
            {"path": "/api/tests/generate", "methods": ["POST"]},
            {"path": "/api/tests/run", "methods": ["POST"]},
            {"path": "/api/tests/{id}", "methods": ["GET"]},
            {"path": "/api/tests/generated/{id}", "methods": ["GET"]},
            {"path": "/api/tests/debug", "methods": ["GET"]},
        ],
    }


@router.post("/generate")
async def generate_tests(request: Request, body: GenerateRequest | None = None):
    """Generate test cases from an API specification and keep them for later runs."""
    if body is None or body.api_spec is None:
        return _error(400, "API specification is required")

    record = await _service(request).generate(body.api_spec)
    return {
        "id": record.id,
        "testCases": [tc.model_dump(mode="json", by_alias=True) for tc in record.test_cases],
        "summary": summarize_cases(record.test_cases),
    }


@router.post("/run")
async def run_tests(request: Request, body: RunRequest | None = None):
    """Run a stored generation, or generate from apiSpec and run. 200 even if every case fails."""
    body = body or RunRequest()
    if not body.base_url:
        return _error(400, "Base URL is required")
    if not body.generation_id and body.api_spec is None:
        return _error(400, "Either generationId or apiSpec is required")

    suite = await _service(request).run(body.base_url, generation_id=body.generation_id, document=body.api_spec)
    return suite.model_dump(mode="json", by_alias=True)


@router.get("/generated/{generation_id}")
async def get_generated(generation_id: str, request: Request):
    record = _service(request).get_generation(generation_id)
    return {
        "testCases": [tc.model_dump(mode="json", by_alias=True) for tc in record.test_cases],
        "timestamp": record.timestamp.isoformat(),
    }


@router.get("/{suite_id}")
async def get_suite_result(suite_id: str, request: Request):
    return _service(request).get_result(suite_id).model_dump(mode="json", by_alias=True)


def create_app(service: TestingService | None = None) -> FastAPI:
    """Build the application; pass a service to inject generators, runners or stores."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        yield

    app = FastAPI(
        title="api-probe",
        description="Generate API test cases from a specification and run them against a live endpoint",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.service = service or TestingService()

    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SpecError)
    async def spec_error_handler(request: Request, exc: SpecError):
        return _error(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    app.include_router(router, prefix="/api/tests", tags=["tests"])
    return app
