"""Access gate tests"""

import httpx
import pytest
from starlette.requests import Request

from app.services.auth_service import AccessGate, AuthError, extract_token

NOW = 1_700_000_000
CLIENT_ID = "client-123.apps.googleusercontent.com"


def _claims(**overrides):
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CLIENT_ID,
        "sub": "1234567890",
        "exp": str(NOW + 3600),
        "email": "Me@Example.com",
        "email_verified": "true",
    }
    claims.update(overrides)
    return {k: v for k, v in claims.items() if v is not None}


def _gate(handler, allowed=("me@example.com ",), client_id=CLIENT_ID, debug_bypass=False):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return AccessGate(
        client_id=client_id,
        allowed_emails=allowed,
        tokeninfo_url="https://oauth2.example.test/tokeninfo",
        debug_bypass=debug_bypass,
        http_client=client,
        clock=lambda: NOW,
    )


def _responding(claims, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["id_token"] == "tok"
        return httpx.Response(status_code, json=claims)

    return handler


def _request(headers=None, query=b""):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "query_string": query,
    }
    return Request(scope)


class TestAccessGate:
    """Test token verification outcomes"""

    def test_valid_token(self):
        result = _gate(_responding(_claims())).verify("tok")
        assert result.email == "me@example.com"
        assert result.subject == "1234567890"

    def test_issuer_without_scheme_accepted(self):
        assert _gate(_responding(_claims(iss="accounts.google.com"))).verify("tok").email == "me@example.com"

    def test_missing_token(self):
        with pytest.raises(AuthError, match="missing token") as exc:
            _gate(_responding(_claims())).verify(None)
        assert exc.value.status_code == 401

    @pytest.mark.parametrize("client_id,allowed", [(None, ("me@example.com",)), (CLIENT_ID, ())])
    def test_missing_configuration(self, client_id, allowed):
        with pytest.raises(AuthError, match="missing configuration"):
            _gate(_responding(_claims()), allowed=allowed, client_id=client_id).verify("tok")

    def test_verification_http_error(self):
        with pytest.raises(AuthError, match="token verification failed"):
            _gate(_responding({"error": "invalid_token"}, status_code=400)).verify("tok")

    def test_verification_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(AuthError, match="token verification failed"):
            _gate(handler).verify("tok")

    @pytest.mark.parametrize(
        "overrides,reason",
        [
            ({"iss": "https://evil.example.com"}, "invalid issuer"),
            ({"aud": "someone-else"}, "invalid audience"),
            ({"exp": str(NOW - 1)}, "token expired"),
            ({"exp": "soon"}, "token expired"),
            ({"exp": None}, "token expired"),
            ({"email_verified": "false"}, "email not verified"),
            ({"email": None}, "missing email"),
            ({"email": "   "}, "missing email"),
        ],
    )
    def test_unauthorized_reasons(self, overrides, reason):
        with pytest.raises(AuthError, match=reason) as exc:
            _gate(_responding(_claims(**overrides))).verify("tok")
        assert exc.value.status_code == 401

    def test_boolean_email_verified(self):
        assert _gate(_responding(_claims(email_verified=True))).verify("tok").email == "me@example.com"

    def test_forbidden_email(self):
        with pytest.raises(AuthError, match="forbidden email") as exc:
            _gate(_responding(_claims(email="stranger@example.com"))).verify("tok")
        assert exc.value.status_code == 403

    def test_debug_bypass_skips_verification(self):
        def handler(request):
            raise AssertionError("tokeninfo must not be called")

        result = _gate(handler, client_id=None, allowed=(), debug_bypass=True).verify(None)
        assert result.email == "debug@localhost"


class TestExtractToken:
    """Test credential transport"""

    def test_bearer_header(self):
        assert extract_token(_request({"Authorization": "Bearer abc"}, b"id_token=zzz")) == "abc"

    def test_query_param_fallback(self):
        assert extract_token(_request(query=b"id_token=zzz")) == "zzz"

    def test_absent(self):
        assert extract_token(_request({"Authorization": "Basic abc"})) is None
