"""
    Taxonomy error types surfaced to admin callers
"""

from typing import Optional


class TaxonomyError(Exception):
    """Base class for errors reported back to the admin caller"""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaxonomyError):
    """A required field is blank or malformed"""
    http_status = 400


class InvalidSlug(TaxonomyError):
    """A name slugifies to an empty identifier"""
    http_status = 400


class NotFound(TaxonomyError):
    """Referenced taxonomy node or listing does not exist"""
    http_status = 404


class OperationFailed(TaxonomyError):
    """The document store or model provider failed"""
    http_status = 502


class EditorBusy(TaxonomyError):
    """Another mutation is still in flight on this editor"""
    http_status = 409


class DeletionBlocked(TaxonomyError):
    """Listings still reference the node (or one of its descendants)"""

    http_status = 409

    def __init__(self, entity_type: str, entity_name: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot delete {entity_type} \"{entity_name}\" as it is associated with existing listings."
        )
        self.entity_type = entity_type
        self.entity_name = entity_name
