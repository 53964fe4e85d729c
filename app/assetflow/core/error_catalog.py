from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    NOT_FOUND = ErrorDefinition("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    INSUFFICIENT_STOCK = ErrorDefinition(
        "INSUFFICIENT_STOCK",
        "Insufficient stock",
        status.HTTP_409_CONFLICT,
    )
    INVALID_STATE_TRANSITION = ErrorDefinition(
        "INVALID_STATE_TRANSITION",
        "Invalid state transition",
        status.HTTP_409_CONFLICT,
    )
    ALREADY_RESOLVED = ErrorDefinition(
        "ALREADY_RESOLVED",
        "Transfer already resolved",
        status.HTTP_409_CONFLICT,
    )
    DUPLICATE_IDENTITY = ErrorDefinition(
        "DUPLICATE_IDENTITY",
        "Serial number, patrimony tag or barcode already exists",
        status.HTTP_409_CONFLICT,
    )
    ASSET_REFERENCED = ErrorDefinition(
        "ASSET_REFERENCED",
        "Asset is referenced by ledger entries",
        status.HTTP_409_CONFLICT,
    )
    STORE_REFERENCED = ErrorDefinition(
        "STORE_REFERENCED",
        "Store is referenced by ledger entries",
        status.HTTP_409_CONFLICT,
    )
    DUPLICATE_TERM_NUMBER = ErrorDefinition(
        "DUPLICATE_TERM_NUMBER",
        "Responsibility term number already exists",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
