"""Shared API dependencies."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Path, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from awaylog.core.config import Config
from awaylog.core.logging import get_logger
from awaylog.ledger import EntryLedger
from awaylog.storage.base import StorageBackend

__all__ = [
    "EntryId",
    "get_config",
    "get_ledger",
    "get_storage_backend",
    "require_admin",
]

logger = get_logger("api.auth")
basic_auth = HTTPBasic(auto_error=False, realm="awaylog admin")

EntryId = Annotated[str, Path(..., min_length=1, max_length=128)]


def get_config(request: Request) -> Config:
    """Return the configuration the app was built with."""

    return request.app.state.config


def get_ledger(request: Request) -> EntryLedger:
    """Return the process-wide entry ledger."""

    return request.app.state.ledger


def get_storage_backend(request: Request) -> StorageBackend:
    """Return the storage backend behind the ledger."""

    return request.app.state.storage


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": 'Basic realm="awaylog admin"'},
    )


def require_admin(
    credentials: HTTPBasicCredentials | None = Depends(basic_auth),
    config: Config = Depends(get_config),
) -> str:
    """
    HTTP Basic gate for the admin surface.

    The admin surface stays closed while no admin password is configured.
    """

    if credentials is None:
        raise _unauthorized("No credentials provided")
    if not config.admin_password:
        logger.warning("Admin login attempted but AWAYLOG_ADMIN_PASSWORD is not set")
        raise _unauthorized("Admin access is disabled")

    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), config.admin_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), config.admin_password.encode("utf-8")
    )
    if not (user_ok and password_ok):
        logger.info(f"Rejected admin credentials for user {credentials.username!r}")
        raise _unauthorized(f"Credentials for {credentials.username} rejected")
    return credentials.username
