"""Доменные ошибки и их HTTP-представление.

Каждая ошибка несёт стабильный `code`, по которому клиент решает, что
делать дальше: исправить запрос, перелогиниться или повторить позже.
Ответ API всегда имеет вид ``{"detail": <message>, "code": <code>}``.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError


class DomainError(Exception):
    """Базовая ошибка бизнес-логики."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "domain_error"
    message: str = "request failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_request"
    message = "invalid request"


class UnauthorizedError(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    message = "unauthorized"


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    message = "forbidden"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "not found"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    message = "conflict"


class ServiceUnavailableError(DomainError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "service_unavailable"
    message = "service unavailable"


class PersistenceError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "server_error"
    message = "internal server error"


# Orders
class InvalidClientRequestID(ValidationError):
    code = "invalid_client_request_id"
    message = "client_request_id must be a valid UUID"


class EmptyItems(ValidationError):
    code = "empty_items"
    message = "order must contain at least one item"


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"
    message = "item quantity must be > 0"


class InvalidOrderType(ValidationError):
    code = "invalid_order_type"
    message = "order type must be delivery or pickup"


class MissingPaymentMethod(ValidationError):
    code = "missing_payment_method"
    message = "payment method is required"


class AddressRequired(ValidationError):
    code = "address_required"
    message = "address is required for delivery"


class InvalidRegion(ValidationError):
    code = "invalid_region"
    message = "region is not available"


class InvalidAddress(ValidationError):
    code = "invalid_address"
    message = "address does not belong to user"


class ProductNotFound(ValidationError):
    code = "product_not_found"
    message = "product not found or inactive"


class InvalidStatus(ValidationError):
    code = "invalid_status"
    message = "invalid status"


class OrderNotFound(NotFoundError):
    code = "order_not_found"
    message = "order not found"


class OrderPersistenceError(PersistenceError):
    code = "order_persistence_failed"
    message = "failed to persist order"


# Auth
class InvalidInitData(UnauthorizedError):
    code = "invalid_init_data"
    message = "invalid telegram init data"


class ExpiredInitData(UnauthorizedError):
    code = "expired_init_data"
    message = "telegram init data expired"


class MissingUserPayload(UnauthorizedError):
    code = "missing_user_payload"
    message = "telegram user payload missing"


class InvalidRegisterInput(ValidationError):
    code = "invalid_register_input"
    message = "first name, phone and location are required"


class InvalidCredentials(UnauthorizedError):
    code = "invalid_credentials"
    message = "invalid credentials"


class InvalidToken(UnauthorizedError):
    code = "invalid_token"
    message = "could not validate credentials"


class AuthNotConfigured(ServiceUnavailableError):
    code = "auth_not_configured"
    message = "telegram authentication is not configured"


# Catalog / addresses
class CategoryNotFound(NotFoundError):
    code = "category_not_found"
    message = "category not found"


class ProductMissing(NotFoundError):
    code = "product_missing"
    message = "product not found"


class RegionNotFound(NotFoundError):
    code = "region_not_found"
    message = "region not found"


class AddressNotFound(NotFoundError):
    code = "address_not_found"
    message = "address not found"


class ResourceInUse(ConflictError):
    code = "resource_in_use"
    message = "resource is referenced by other records"


def _error_body(exc: DomainError) -> dict[str, str]:
    return {"detail": exc.message, "code": exc.code}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Отрендерить доменную ошибку в JSON."""

    if exc.status_code >= 500:
        logger.error(
            "{method} {path} failed: {code}",
            method=request.method,
            path=request.url.path,
            code=exc.code,
        )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Ошибки хранилища отдаются клиенту как общий 500."""

    logger.opt(exception=exc).error(
        "Storage failure on {method} {path}",
        method=request.method,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "internal server error", "code": "server_error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Подключить обработчики ошибок к приложению."""

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
