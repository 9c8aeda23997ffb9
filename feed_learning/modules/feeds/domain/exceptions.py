"""Feed domain exceptions."""

from feed_learning.core.domain.exceptions import (
    ConcurrencyConflictError,
    DomainException,
    DuplicateEntityError,
    ValidationError,
)


class InvalidUsageReportError(ValidationError):
    """Raised when a usage report is malformed."""

    def __init__(self, message: str):
        super().__init__(f"Invalid usage report: {message}")


class FeedAlreadyInCatalogError(DuplicateEntityError):
    """Raised when the catalog already holds the (category, url) feed."""

    def __init__(self, category_id: str, url: str):
        super().__init__("CatalogFeed", f"url in category '{category_id}'", url)
        self.category_id = category_id
        self.url = url


class FeedUsageConflictError(ConcurrencyConflictError):
    """Raised when a usage update keeps conflicting with concurrent writers."""

    def __init__(self, url: str, category_id: str, attempts: int):
        super().__init__(
            f"Usage update for '{url}' in category '{category_id}' "
            f"conflicted {attempts} times"
        )


class InvalidStoreRecordError(DomainException):
    """Raised when a stored record cannot be decoded."""

    error_code = "INVALID_STORE_RECORD"

    def __init__(self, key: str, reason: str):
        super().__init__(f"Stored record '{key}' is invalid: {reason}")
