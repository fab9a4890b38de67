"""
Doku request/callback signatures.

Pure functions, no I/O. A payload is canonicalized (sorted keys, compact
separators, UTF-8), hashed with SHA-256, and the hex digest is signed with
HMAC-SHA256 over `clientId:timestamp:requestId:digest`. Components that are
not supplied are left out, so an inbound callback is signed over the bare
digest.
"""
import hashlib
import hmac
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

SIGNATURE_FIELD = "signature"


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonicalize(payload: Mapping[str, Any]) -> bytes:
    """
    Deterministic byte form of a payload, signature field excluded.

    Raises:
        TypeError: If the payload holds values JSON cannot represent
    """
    body = {k: v for k, v in payload.items() if k != SIGNATURE_FIELD}
    return json.dumps(
        body,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    ).encode("utf-8")


def content_digest(payload: Mapping[str, Any]) -> str:
    """SHA-256 hex digest of the canonical payload."""
    return hashlib.sha256(canonicalize(payload)).hexdigest()


def string_to_sign(
    digest: str,
    client_id: Optional[str] = None,
    timestamp: Optional[str] = None,
    request_id: Optional[str] = None,
) -> str:
    parts = [client_id, timestamp, request_id, digest]
    return ":".join(str(part) for part in parts if part)


def sign(
    payload: Mapping[str, Any],
    secret: str,
    client_id: Optional[str] = None,
    timestamp: Optional[str] = None,
    request_id: Optional[str] = None,
) -> str:
    """
    HMAC-SHA256 signature of a payload.

    Args:
        payload: JSON-like mapping; its `signature` key is ignored
        secret: Shared secret
        client_id: Gateway client id (outbound requests only)
        timestamp: Request timestamp, epoch millis as string
        request_id: Per-call unique id

    Returns:
        Lower-case hex signature
    """
    message = string_to_sign(content_digest(payload), client_id, timestamp, request_id)
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def verify(
    payload: Any,
    provided_signature: Any,
    secret: Any,
    client_id: Optional[str] = None,
    timestamp: Optional[str] = None,
    request_id: Optional[str] = None,
) -> bool:
    """
    Check a signature in constant time.

    Never raises: malformed payloads, signatures or secrets yield False.
    """
    if not isinstance(payload, Mapping):
        return False
    if not isinstance(provided_signature, str) or not provided_signature.isascii():
        return False
    if not isinstance(secret, str) or not secret:
        return False
    try:
        expected = sign(payload, secret, client_id, timestamp, request_id)
    except (TypeError, ValueError):
        return False
    return hmac.compare_digest(expected, provided_signature)


def sign_payload(payload: Mapping[str, Any], secret: str) -> dict:
    """Copy of payload with its `signature` field set, as the gateway would send it."""
    signed = dict(payload)
    signed[SIGNATURE_FIELD] = sign(payload, secret)
    return signed
