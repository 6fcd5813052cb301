from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from actionboard.dashboard_service.credentials import create_secret_provider
from actionboard.dashboard_service.errors import BoardError
from actionboard.dashboard_service.log import setup_logging
from actionboard.dashboard_service.managers.documents import ConfigDocumentStore
from actionboard.dashboard_service.models.api import ErrorResponse
from actionboard.dashboard_service.settings import BoardSettings, get_settings
from actionboard.dashboard_service.store.base import BlobStore
from actionboard.dashboard_service.store.local import LocalBlobStore
from actionboard.dashboard_service.upstream.github import GitHubAppProvider


def create_blob_store(settings: BoardSettings) -> BlobStore:
    """Create the blob store backend based on configuration."""
    if settings.blob_store == "s3":
        from actionboard.dashboard_service.store.s3 import S3BlobStore

        if not settings.s3_bucket:
            msg = "ACTIONBOARD_S3_BUCKET is required when ACTIONBOARD_BLOB_STORE=s3"
            raise ValueError(msg)
        return S3BlobStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key.get_secret_value() if settings.s3_secret_key else None,
            prefix=settings.data_prefix,
            region=settings.s3_region,
            path_style=settings.s3_path_style,
            conditional_writes=settings.s3_conditional_writes,
        )
    return LocalBlobStore(settings.data_root, prefix=settings.data_prefix)


def create_document_store(settings: BoardSettings) -> ConfigDocumentStore:
    return ConfigDocumentStore(
        create_blob_store(settings),
        settings.config_key,
        max_attempts=settings.max_write_attempts,
        persist_migrations=settings.persist_migrations,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info("Actionboard starting (host={}, port={})", settings.host, settings.port)
    prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
    location = settings.s3_bucket if settings.blob_store == "s3" else settings.data_root
    logger.info("Configuration: {} at {} (store={}{})", settings.config_key, location, settings.blob_store, prefix_info)

    # -- Initialise state fields (always present, possibly None) ----------------
    _app.state.settings = settings
    _app.state.documents = create_document_store(settings)
    _app.state.status_provider = None
    http_client: httpx.AsyncClient | None = None

    # -- GitHub ----------------------------------------------------------------
    if settings.github_enabled:
        http_client = httpx.AsyncClient(
            base_url=settings.github_api_url,
            timeout=settings.upstream_timeout,
            headers={"User-Agent": "actionboard"},
        )
        _app.state.status_provider = GitHubAppProvider(
            http_client,
            create_secret_provider(settings),
            app_id_secret=settings.github_app_id_secret,
            private_key_secret=settings.github_app_private_key_secret,
        )
        logger.info("GitHub: {} (secrets={})", settings.github_api_url, settings.secret_provider)
    else:
        logger.warning("ACTIONBOARD_GITHUB_ENABLED is off -- statuses will report the integration as unavailable")

    yield

    # -- Shutdown --------------------------------------------------------------
    logger.info("Actionboard shutting down")
    if http_client is not None:
        await http_client.aclose()
        logger.info("GitHub: client closed")


app = FastAPI(title="Actionboard", lifespan=lifespan)

# ---------------------------------------------------------------------------
# Error translation -- every error body is {"error": kind, "message": str}
# ---------------------------------------------------------------------------


@app.exception_handler(BoardError)
async def board_error_handler(_request: Request, exc: BoardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} ({}): {}", type(exc).__name__, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kinds = {404: "not_found", 405: "method_not_allowed", 503: "service_unavailable"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": kinds.get(exc.status_code, "http_error"), "message": str(exc.detail)},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "An unexpected error occurred."},
    )


def _validation_body(errors: list[Any]) -> dict[str, str]:
    """Collapse pydantic errors into one ``{error, message}`` body.

    Errors arrive in field order and the first one wins.  A ``BoardError``
    raised inside a field validator keeps its own kind and message; when the
    first problem is a missing field, every missing field is reported together.
    """
    if not errors:
        return {"error": "validation_error", "message": "Invalid request."}
    err = errors[0]

    cause = (err.get("ctx") or {}).get("error")
    if isinstance(cause, BoardError):
        return cause.to_body()

    if err.get("type") == "missing":
        missing = [str(e["loc"][-1]) for e in errors if e.get("type") == "missing" and len(e["loc"]) > 1]
        if not missing:
            return {"error": "validation_error", "message": "Request body is required."}
        return {"error": "validation_error", "message": f"Missing required fields: {', '.join(missing)}"}
    message = str(err.get("msg", "Invalid request.")).removeprefix("Value error, ")
    field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    return {"error": "validation_error", "message": f"{field}: {message}" if field else message}


# ---------------------------------------------------------------------------
# API router -- all backend endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(
    prefix="/api",
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409, 500, 503)},
)


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from actionboard.dashboard_service.routers.config import router as config_router  # noqa: E402
from actionboard.dashboard_service.routers.dashboards import router as dashboards_router  # noqa: E402
from actionboard.dashboard_service.routers.statuses import router as statuses_router  # noqa: E402
from actionboard.dashboard_service.routers.workflows import router as workflows_router  # noqa: E402

api.include_router(config_router)
api.include_router(workflows_router)
api.include_router(dashboards_router)
api.include_router(statuses_router)

app.include_router(api)
