"""Security-related helpers (webhook signatures).

GitHub signs each delivery with the webhook secret (``X-Hub-Signature-256``).
When a secret is configured, unsigned or mis-signed deliveries are rejected.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from fastapi import HTTPException, Request

SIGNATURE_HEADER = "X-Hub-Signature-256"


@dataclass(frozen=True)
class WebhookSignature:
    algorithm: str
    digest: str


def _parse_signature_header(header_value: str) -> WebhookSignature | None:
    """Parse ``sha256=<hex>``."""
    if not header_value:
        return None

    algorithm, sep, digest = header_value.partition("=")
    if sep != "=" or algorithm.lower() != "sha256" or not digest:
        return None

    try:
        bytes.fromhex(digest)
    except ValueError:
        return None

    return WebhookSignature(algorithm="sha256", digest=digest.lower())


def sign_payload(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_signature(secret: str, body: bytes, header_value: str) -> bool:
    signature = _parse_signature_header(header_value)
    if signature is None:
        return False
    expected = _parse_signature_header(sign_payload(secret, body))
    return secrets.compare_digest(signature.digest, expected.digest)


class WebhookSignatureVerifier:
    """FastAPI dependency enforcing signed deliveries.

    With no secret configured every delivery is accepted.
    """

    def __init__(self, secret: str | None):
        self._secret = secret

    async def __call__(self, request: Request) -> None:
        if not self._secret:
            return
        body = await request.body()
        if not verify_signature(self._secret, body, request.headers.get(SIGNATURE_HEADER, "")):
            raise HTTPException(status_code=401, detail="Invalid webhook signature")
