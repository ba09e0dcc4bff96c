"""
Service-account authentication for the spreadsheet API.

Main classes:
- TokenManager: builds signed JWT assertions and caches bearer tokens
- ServiceAccountCredential: service-account identity loaded from configuration

Errors:
- AuthError: signing or token-exchange failure
"""

from .auth_credentials import AccessToken, ServiceAccountCredential
from .auth_errors import AuthError
from .auth_token import SHEETS_SCOPE, TokenManager

__all__ = [
    "TokenManager",
    "ServiceAccountCredential",
    "AccessToken",
    "SHEETS_SCOPE",
    "AuthError",
]
