"""
Error taxonomy shared by the gateways, the identity bridge and the routes.

Every failure the web tier knows how to handle is one of the classes below.
Each carries a user-facing message and the HTTP status the routes answer with.
"""

from __future__ import annotations


class BudgetWebError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class UnauthorizedError(BudgetWebError):
    """No valid session."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotProvisionedError(BudgetWebError):
    """Valid session, but the backend has no matching internal user."""

    status_code = 403

    def __init__(self, message: str = "User not found in local database"):
        super().__init__(message)


class NotFoundError(BudgetWebError):
    status_code = 404


class ValidationError(BudgetWebError):
    """Missing or malformed input, detected before any backend call."""

    status_code = 400


class UpstreamError(BudgetWebError):
    """Non-success backend response not covered by a more specific class."""

    status_code = 502


class TransportError(BudgetWebError):
    """The backend or the auth provider could not be reached."""

    status_code = 502


class AuthProviderError(UpstreamError):
    """The auth provider rejected a code exchange, sign-out or admin call."""

    status_code = 500


class ForbiddenError(BudgetWebError):
    """Signed in, but lacking the role the operation needs."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)
