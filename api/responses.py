"""
Uniform response envelope.

Every route answers {"success": true, "data": ...}; errors are rendered by
api.errors with {"success": false, "error": ..., "details": ...}.
"""
from typing import Any, Optional

from pydantic import BaseModel


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Wrap a DTO (or plain data) in the success envelope."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def error_body(error: str, code: str, details: Optional[Any] = None) -> dict:
    body = {"success": False, "error": error, "code": code}
    if details:
        body["details"] = details
    return body
