"""Doku payment gateway adapter."""

from .client import DokuGatewayClient
from .signature import canonicalize, content_digest, sign, sign_payload, string_to_sign, verify

__all__ = [
    "DokuGatewayClient",
    "canonicalize",
    "content_digest",
    "sign",
    "sign_payload",
    "string_to_sign",
    "verify",
]
