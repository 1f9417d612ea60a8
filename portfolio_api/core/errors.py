"""
Domain errors.

Services raise these; the exception handlers in `main.py` are the only place
they become HTTP responses.
"""

from __future__ import annotations


class PortfolioError(Exception):
    """Base class for errors the API layer knows how to translate."""

    default_detail = "Request failed."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(PortfolioError):
    default_detail = "Not found."

    def __init__(self, resource: str = "resource", resource_id: int | None = None) -> None:
        # Kept for logs only; the response body stays generic.
        self.resource = resource
        self.resource_id = resource_id
        super().__init__()


class Unauthenticated(PortfolioError):
    default_detail = "Not authenticated."


class InvalidCredentials(PortfolioError):
    default_detail = "Invalid username or password."


class ValidationError(PortfolioError):
    default_detail = "Invalid request body."
