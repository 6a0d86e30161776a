"""API module for the FastAPI web application."""

from src.api.models import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
)

__all__ = [
    "ErrorResponse",
    "GenerateRequest",
    "GenerateResponse",
]
