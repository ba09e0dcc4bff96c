"""
Custom exceptions for the auth module.
"""


class AuthError(Exception):
    """Raised when the assertion cannot be signed or the token exchange fails."""

    def __init__(self, message: str = "", body: str = ""):
        super().__init__(message)
        self.body = body
