"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from nyumbatz.api.router import api_router
from nyumbatz.config import get_settings
from nyumbatz.dependencies import Services, build_services
from nyumbatz.exceptions import (
    AuthenticationFailed, ConfigurationMissing, NyumbaError, PermissionDenied,
    RemoteRequestFailed, ValidationFailed,
)
from nyumbatz.logging_config import setup_logging

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[NyumbaError], int] = {
    ValidationFailed: 422,
    AuthenticationFailed: 401,
    PermissionDenied: 403,
    RemoteRequestFailed: 502,
    ConfigurationMissing: 503,
}


def status_for(exc: NyumbaError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 500


async def _nyumba_error_handler(request: Request, exc: NyumbaError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, status, exc.message)
    return JSONResponse(status_code=status, content={"error": exc.to_payload()})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {}
    for err in exc.errors():
        # first element is the location kind (body/query/path)
        field = ".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0])
        fields.setdefault(field, err["msg"])
    failure = ValidationFailed("Please check your input and try again.", fields)
    return JSONResponse(status_code=422, content={"error": failure.to_payload()})


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: Services = app.state.services
    logger.info("NyumbaTZ API starting in %s mode", await services.selector.mode())
    yield
    services.cache.clear()


def create_app(services: Services | None = None) -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="NyumbaTZ",
        description="Rental listings for Tanzania, backed by Supabase or a built-in sample dataset.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services or build_services(settings)

    app.add_exception_handler(NyumbaError, _nyumba_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(api_router)

    # Files written by the sample-data source
    upload_dir = Path(settings.storage.local_upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")
    return app


app = create_app()
