"""
Bearer-token manager for a service-account identity.

Builds a self-signed RS256 JWT assertion, exchanges it at the OAuth2 token
endpoint with the JWT-bearer grant and caches the resulting access token
until it is within a minute of expiring.
"""

import asyncio
import base64
import json
import time
from typing import Callable, Optional

import requests
from google.auth import crypt
from pydantic import ValidationError

from ..config.logger_module import log_info, log_error
from .auth_credentials import AccessToken, ServiceAccountCredential, TokenResponse
from .auth_errors import AuthError


SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


def base64url(data: bytes) -> str:
    """Unpadded base64url encoding used by JWT segments."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class TokenManager:
    """
    Produces and caches short-lived bearer tokens for one service account.

    The cached token is replaced, never mutated, once it has less than
    ``refresh_margin`` seconds of validity left. Concurrent callers racing a
    refresh each perform their own exchange; the last one to finish wins.
    """

    def __init__(self,
                 credential: ServiceAccountCredential,
                 scope: str = SHEETS_SCOPE,
                 session: requests.Session = None,
                 timeout: float = 30.0,
                 lifetime_seconds: int = 3600,
                 refresh_margin: float = 60.0,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the token manager.

        Args:
            credential: Service-account identity
            scope: OAuth2 scope requested in the assertion
            session: HTTP session (a new one is created if omitted)
            timeout: HTTP timeout for the token exchange in seconds
            lifetime_seconds: Requested assertion lifetime
            refresh_margin: Seconds before expiry at which the token is replaced
            clock: Source of epoch seconds
        """
        self.credential = credential
        self.scope = scope
        self.timeout = timeout
        self.lifetime_seconds = lifetime_seconds
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._session = session or requests.Session()
        self._token: Optional[AccessToken] = None

    @property
    def token_uri(self) -> str:
        return self.credential.token_uri

    def build_assertion(self, issued_at: int) -> str:
        """
        Build and sign the JWT assertion.

        Args:
            issued_at: Issue instant in epoch seconds

        Returns:
            Compact JWT "header.claims.signature"

        Raises:
            AuthError: If the private key cannot be parsed or used
        """
        header = {"alg": "RS256", "typ": "JWT"}
        claims = {
            "iss": self.credential.client_email,
            "scope": self.scope,
            "aud": self.token_uri,
            "iat": issued_at,
            "exp": issued_at + self.lifetime_seconds,
        }

        unsigned = ".".join(
            base64url(json.dumps(part, separators=(",", ":")).encode("utf-8"))
            for part in (header, claims)
        )

        try:
            signer = crypt.RSASigner.from_string(self.credential.private_key)
            signature = signer.sign(unsigned.encode("ascii"))
        except (ValueError, TypeError) as e:
            raise AuthError(f"Unable to sign assertion with service account key: {e}")

        return f"{unsigned}.{base64url(signature)}"

    def _exchange(self, assertion: str) -> AccessToken:
        """Exchange a signed assertion for an access token (blocking)."""
        requested_at = self._clock()
        try:
            response = self._session.post(
                self.token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AuthError(f"Token exchange request failed: {e}")

        if not 200 <= response.status_code < 300:
            log_error(f"Token exchange failed: HTTP {response.status_code}")
            raise AuthError(
                f"Token exchange failed: {response.status_code} {response.text}",
                body=response.text,
            )

        try:
            payload = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthError(f"Malformed token response: {e}", body=response.text)

        return AccessToken(
            token=payload.access_token,
            expires_at=requested_at + payload.expires_in,
        )

    async def get_access_token(self) -> str:
        """
        Return a bearer token, exchanging a new assertion when needed.

        Returns:
            Access token string

        Raises:
            AuthError: On signing or exchange failure (never retried)
        """
        cached = self._token
        if cached is not None and cached.is_usable(self._clock(), self.refresh_margin):
            return cached.token

        assertion = self.build_assertion(int(self._clock()))
        token = await asyncio.to_thread(self._exchange, assertion)
        self._token = token

        log_info(
            f"Access token obtained for {self.credential.client_email} "
            f"(valid {int(token.expires_at - self._clock())}s)"
        )
        return token.token

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a new exchange."""
        self._token = None
