"""
japa.errors — Service-Level Error Kinds
=========================================

Services raise these; the API layer maps each kind to an HTTP status.
``ValidationError`` is also a ``ValueError`` so callers that only care
about "bad input" can keep catching ``ValueError``.
"""

from __future__ import annotations


class JapaError(Exception):
    """Base class for every error the core surfaces to its callers."""


class NotFoundError(JapaError, LookupError):
    """The referenced account (or other row) does not exist."""


class ConflictError(JapaError):
    """A unique field (e.g. email) is already taken."""


class ValidationError(JapaError, ValueError):
    """Malformed input, rejected before anything is written."""


class UnavailableError(JapaError):
    """The store could not complete the operation; nothing was applied."""
