"""
Credential and token models for service-account authentication.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, field_validator


DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ServiceAccountCredential(BaseModel):
    """Service-account identity: principal, signing key and token endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    client_email: str
    private_key: str
    token_uri: str = DEFAULT_TOKEN_URI

    @field_validator("private_key")
    @classmethod
    def _unescape_newlines(cls, value: str) -> str:
        # Keys pasted into .env files often carry literal "\n" sequences
        return value.replace("\\n", "\n")

    @field_validator("token_uri")
    @classmethod
    def _default_token_uri(cls, value: str) -> str:
        return value or DEFAULT_TOKEN_URI

    def __repr__(self) -> str:
        return f"ServiceAccountCredential(client_email={self.client_email!r})"

    __str__ = __repr__


class TokenResponse(BaseModel):
    """Body returned by the OAuth2 token endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    expires_in: int = 3600


@dataclass(frozen=True)
class AccessToken:
    """Bearer token with its absolute expiry (epoch seconds)."""

    token: str
    expires_at: float

    def is_usable(self, now: float, margin: float) -> bool:
        return now < self.expires_at - margin

    def __repr__(self) -> str:
        return f"AccessToken(expires_at={self.expires_at})"
