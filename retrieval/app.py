from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import RetrievalConfig
from .exceptions import InvalidArgumentError, NotInitializedError
from .logging_config import get_logger
from .models import (
    ErrorResponse,
    InitializeResult,
    ResetResponse,
    SearchRequest,
    SearchResponse,
    StatusResponse,
)
from .store import RetrievalStore

logger = get_logger(__name__)


def _error(status_code: int, error: str, needs_initialization: bool | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, needs_initialization=needs_initialization)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def create_app(
    config: RetrievalConfig | None = None,
    store: RetrievalStore | None = None,
) -> FastAPI:
    cfg = config or (store.config if store else RetrievalConfig())
    service = store or RetrievalStore(cfg)

    app = FastAPI(
        title="Policy Document Retrieval Service",
        version="1.0.0",
        description="Vector search over startup funding policy PDFs.",
    )
    app.state.store = service

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.exception_handler(NotInitializedError)
    async def not_initialized(request: Request, exc: NotInitializedError) -> JSONResponse:
        return _error(503, exc.message, needs_initialization=True)

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument(request: Request, exc: InvalidArgumentError) -> JSONResponse:
        return _error(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
        return _error(400, "; ".join(messages) or "Invalid request")

    @app.get("/health")
    def health(detailed: bool = False) -> dict:
        body = {
            "status": "healthy",
            "message": "Retrieval API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if detailed:
            # loads the embedding model or contacts Ollama
            body["details"] = service.health_check()
        return body

    @app.post("/api/documents/initialize", response_model=InitializeResult)
    def initialize():
        try:
            return service.initialize()
        except Exception as exc:
            logger.error("Vector store initialization error: %s", exc)
            return _error(500, str(exc))

    @app.post("/api/documents/search", response_model=SearchResponse)
    def search(request: SearchRequest):
        try:
            top_k = request.top_k if request.top_k is not None else service.config.default_top_k
            results = service.search(request.query, top_k)
        except (NotInitializedError, InvalidArgumentError):
            raise
        except Exception as exc:
            logger.error("Document search error: %s", exc)
            return _error(500, str(exc))
        return SearchResponse(query=request.query, results=results, count=len(results))

    @app.get("/api/documents/status", response_model=StatusResponse)
    def status() -> StatusResponse:
        return StatusResponse(**service.status().model_dump())

    @app.post("/api/documents/reset", response_model=ResetResponse)
    def reset() -> ResetResponse:
        service.reset()
        return ResetResponse()

    return app
