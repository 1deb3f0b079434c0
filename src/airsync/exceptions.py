"""
Custom exceptions for the airsync application.
"""

import asyncio
from enum import Enum

import asyncpg


class AirsyncException(Exception):
    """Base exception for all application-specific errors."""
    pass

class ConfigurationError(AirsyncException):
    """Error related to environment or field mapping configuration."""
    pass


class StorageErrorKind(str, Enum):
    """How a storage-layer failure should be reported to the caller."""
    UNAVAILABLE = "storage_unavailable"
    CONSTRAINT_VIOLATION = "constraint_violation"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN = "unknown"


def classify_storage_error(exc: BaseException) -> StorageErrorKind:
    """
    Classify an exception raised by the storage layer.

    The engine never converts storage errors; callers use this to pick a
    protocol-level response.
    """
    if isinstance(exc, asyncpg.exceptions.IntegrityConstraintViolationError):
        return StorageErrorKind.CONSTRAINT_VIOLATION
    # Client-side argument encoding failures are raised as a ValueError
    # subclass; server-side ones are SQLSTATE class 22.
    if isinstance(exc, (asyncpg.exceptions.DataError, ValueError)):
        return StorageErrorKind.TYPE_MISMATCH
    if isinstance(exc, (
        asyncpg.exceptions.PostgresConnectionError,
        asyncpg.exceptions.CannotConnectNowError,
        asyncpg.exceptions.InterfaceError,
        asyncio.TimeoutError,
        OSError,
    )):
        return StorageErrorKind.UNAVAILABLE
    return StorageErrorKind.UNKNOWN
