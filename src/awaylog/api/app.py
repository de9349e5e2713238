"""FastAPI entrypoint for the awaylog service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from awaylog.api.routers import admin, entries, health
from awaylog.core.config import Config
from awaylog.core.exceptions import AwaylogError, ErrorKind
from awaylog.core.logging import configure_logging, get_logger
from awaylog.ledger import CollectionLock, EntryLedger
from awaylog.storage import get_storage
from awaylog.storage.base import StorageBackend

logger = get_logger("api")

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def _awaylog_error_handler(request: Request, exc: AwaylogError) -> JSONResponse:
    code = ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=code, content=exc.to_dict())


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": ErrorKind.VALIDATION.value,
            "message": "Invalid request body",
            "details": {"errors": problems},
        },
    )


def create_app(
    config: Config | None = None,
    storage: StorageBackend | None = None,
) -> FastAPI:
    """Instantiate the FastAPI app, wire the ledger and register routers."""

    config = config or Config.from_env()
    configure_logging(level=config.log_level, json_format=config.log_json)
    storage = storage or get_storage(config=config)
    lock = CollectionLock(
        storage,
        ttl=config.lock_ttl,
        retry_count=config.lock_retries,
        retry_delay=config.lock_retry_delay,
    )
    ledger = EntryLedger(storage, collection=config.collection, lock=lock)

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        logger.info(
            f"awaylog starting (env={config.env}, storage={storage.name}, "
            f"collection={config.collection}, admin password={config.masked_admin_password()})"
        )
        yield
        await storage.close()
        logger.info("awaylog stopped")

    application = FastAPI(title="awaylog API", version="0.1.0", lifespan=lifespan)
    application.state.config = config
    application.state.storage = storage
    application.state.ledger = ledger

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )
    application.add_exception_handler(AwaylogError, _awaylog_error_handler)
    application.add_exception_handler(RequestValidationError, _request_validation_handler)

    for router in (health.router, entries.router, admin.router):
        application.include_router(router)
    return application
