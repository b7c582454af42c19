"""
Catalog error types surfaced to the HTTP boundary.
"""


class CatalogError(Exception):
    """Base class for catalog errors carrying an HTTP status code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CatalogValidationError(CatalogError):
    """Request is missing a required value or conflicts with stored data."""

    status_code = 400


class DuplicateReviewError(CatalogValidationError):
    """The user has already reviewed this book."""

    def __init__(self, message: str = "Book already reviewed"):
        super().__init__(message)


class NotAuthorizedError(CatalogError):
    """Acting user lacks the privilege required for the operation."""

    status_code = 401


class NotFoundError(CatalogError):
    """No record exists for the given identifier."""

    status_code = 404


class ConflictError(CatalogError):
    """A concurrent write kept the operation from completing."""

    status_code = 409
