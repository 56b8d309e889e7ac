from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class APIResponse(BaseModel):
    """Envelope for health and error bodies; cache values are returned bare."""

    success: bool
    message: str = ""
    data: dict[str, Any] | None = None
    status_code: int = status.HTTP_200_OK

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.model_dump())


def send_success(
    message: str = "OK", data: dict[str, Any] | None = None
) -> APIResponse:
    return APIResponse(success=True, message=message, data=data)


def error_response(
    message: str, status_code: int, data: dict[str, Any] | None = None
) -> JSONResponse:
    """Generic failure body; the HTTP status and the envelope always agree."""
    return APIResponse(
        success=False, message=message, data=data, status_code=status_code
    ).to_response()
