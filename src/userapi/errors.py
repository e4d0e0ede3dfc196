"""Domain errors raised below the routing layer."""

from __future__ import annotations


class PageRequestError(ValueError):
    """A pagination or filter query parameter is malformed or out of range."""


class UploadStoreError(RuntimeError):
    """The upload store failed to answer a listing query."""


class IdentityError(Exception):
    """An identity-provider token is missing, malformed, or expired."""


class IdentityProviderError(Exception):
    """The identity provider could not be reached or answered with garbage."""
