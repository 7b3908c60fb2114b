"""Error body for all filedrop responses.

Structure:
{
  "message": "string"
}

Client errors echo their message; collaborator failures carry a generic message
and the cause stays in the logs.
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

JSON_HEADERS: Dict[str, str] = {"Content-Type": "application/json"}


class ErrorBody(BaseModel):
    """Canonical error body."""
    message: str


class FileDropError(Exception):
    """Base for every error the upload core reports to callers."""

    code: str = "filedrop.error"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return ErrorBody(message=self.message).model_dump()


def build_error_body(message: str) -> Dict[str, Any]:
    return ErrorBody(message=message).model_dump()


async def _filedrop_exception_handler(request: Request, exc: FileDropError):
    return JSONResponse(content=exc.to_body(), status_code=exc.status_code)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        content=build_error_body(str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(content=build_error_body("Invalid request"), status_code=400)


async def _generic_exception_handler(request: Request, exc: Exception):
    return JSONResponse(content=build_error_body("Internal server error"), status_code=500)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(FileDropError, _filedrop_exception_handler)
    target_app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    target_app.add_exception_handler(Exception, _generic_exception_handler)
