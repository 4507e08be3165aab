# app/utils/errors.py
"""
Domain exceptions raised by services and mapped to HTTP responses by the routers
"""

from typing import Optional

from fastapi import HTTPException


class DearlyError(Exception):
    status_code = 500

    def __init__(self, message: str, hint: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.code = code


class ValidationError(DearlyError):
    status_code = 400


class ForbiddenError(DearlyError):
    status_code = 403


class NotFoundError(DearlyError):
    status_code = 404


class GoneError(DearlyError):
    status_code = 410


class ConfigurationError(DearlyError):
    status_code = 500


class StorageError(DearlyError):
    status_code = 502


class EmailDeliveryError(DearlyError):
    status_code = 502


def to_http(exc: DearlyError) -> HTTPException:
    if not exc.hint and not exc.code:
        return HTTPException(status_code=exc.status_code, detail=exc.message)
    detail = {"message": exc.message}
    if exc.hint:
        detail["hint"] = exc.hint
    if exc.code:
        detail["error"] = exc.code
    return HTTPException(status_code=exc.status_code, detail=detail)
