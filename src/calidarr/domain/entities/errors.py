"""Error taxonomy for the addon domain and use cases."""

from __future__ import annotations


class AddonError(Exception):
    """Base error for calidarr domain/usecases."""

    code = "ADDON_ERROR"


class InvalidInputError(AddonError):
    """Malformed request shape or id."""

    code = "INVALID_INPUT"


class UnsupportedIdTypeError(AddonError):
    """Id matches neither the external nor the site-native format."""

    code = "UNSUPPORTED_ID_TYPE"


class ExternalServiceError(AddonError):
    """Metadata provider unreachable or returned a malformed response."""

    code = "EXTERNAL_SERVICE_ERROR"


class ScrapingError(AddonError):
    """Listing/detail page fetch or parse failed."""

    code = "SCRAPING_ERROR"


class DataNotFoundError(AddonError):
    code = "DATA_NOT_FOUND"


class DatabaseError(AddonError):
    """Persisted store operation failed."""

    code = "DATABASE_ERROR"
