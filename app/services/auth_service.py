"""Access gate - validates Google ID tokens against an email allow-list."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

import httpx
from fastapi import Request

from app.core.config import settings
from app.core.logging import get_logger

log = get_logger("auth_service")

VALID_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})
DEBUG_RESULT_EMAIL = "debug@localhost"


class AuthError(Exception):
    """Access denied; ``reason`` is safe to return to the caller."""

    def __init__(self, reason: str, status_code: int = 401):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


@dataclass(frozen=True)
class AuthResult:
    email: str
    subject: str


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the id_token query param."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.query_params.get("id_token") or None


class AccessGate:
    """Verifies ID tokens via the tokeninfo endpoint.

    Usage:
        gate = AccessGate(client_id="...", allowed_emails=["me@example.com"])
        result = gate.verify(token)  # raises AuthError
    """

    def __init__(
        self,
        client_id: Optional[str],
        allowed_emails: Iterable[str],
        tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo",
        debug_bypass: bool = False,
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.allowed_emails = frozenset(e.strip().lower() for e in allowed_emails if e.strip())
        self.tokeninfo_url = tokeninfo_url
        self.debug_bypass = debug_bypass
        self.timeout = timeout
        self.http_client = http_client
        self.clock = clock

    @classmethod
    def from_settings(cls) -> "AccessGate":
        return cls(
            client_id=settings.GOOGLE_CLIENT_ID,
            allowed_emails=settings.allowed_email_set,
            tokeninfo_url=settings.TOKENINFO_URL,
            debug_bypass=settings.AUTH_DEBUG_BYPASS,
            timeout=settings.AUTH_TIMEOUT_SECONDS,
        )

    def authorize(self, request: Request) -> AuthResult:
        return self.verify(extract_token(request))

    def verify(self, token: Optional[str]) -> AuthResult:
        if self.debug_bypass:
            log.debug("Access gate bypassed (debug mode)")
            return AuthResult(email=DEBUG_RESULT_EMAIL, subject="debug")

        if not token:
            raise AuthError("missing token")
        if not self.client_id or not self.allowed_emails:
            log.error("Access gate is not configured (GOOGLE_CLIENT_ID / ALLOWED_EMAILS)")
            raise AuthError("missing configuration")

        claims = self._fetch_claims(token)

        if claims.get("iss") not in VALID_ISSUERS:
            raise AuthError("invalid issuer")
        if claims.get("aud") != self.client_id:
            raise AuthError("invalid audience")
        if not self._is_unexpired(claims.get("exp")):
            raise AuthError("token expired")
        if str(claims.get("email_verified", "")).lower() != "true":
            raise AuthError("email not verified")

        email = str(claims.get("email") or "").strip().lower()
        if not email:
            raise AuthError("missing email")
        if email not in self.allowed_emails:
            log.warning(f"Rejected email not in allow-list: {email}")
            raise AuthError("forbidden email", status_code=403)

        return AuthResult(email=email, subject=str(claims.get("sub") or ""))

    def _fetch_claims(self, token: str) -> Dict[str, Any]:
        try:
            if self.http_client is not None:
                resp = self.http_client.get(self.tokeninfo_url, params={"id_token": token})
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    resp = client.get(self.tokeninfo_url, params={"id_token": token})
            resp.raise_for_status()
            claims = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning(f"Token verification call failed: {exc}")
            raise AuthError("token verification failed") from exc

        if not isinstance(claims, dict):
            raise AuthError("token verification failed")
        return claims

    def _is_unexpired(self, exp: Any) -> bool:
        try:
            expires_at = float(exp)
        except (TypeError, ValueError):
            return False
        return expires_at > self.clock()
