"""Base domain exceptions.

所有领域异常都应继承自 DomainException，并可以通过定义 error_code 类属性来标识错误类型。
"""


class DomainException(Exception):
    """Base exception for all domain errors."""

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "A domain error occurred"):
        self.message = message
        super().__init__(self.message)


class DuplicateEntityError(DomainException):
    """Raised when a duplicate entity is detected."""

    error_code = "DUPLICATE_ENTITY"

    def __init__(self, entity_type: str, field: str, value: str):
        message = f"{entity_type} with {field} '{value}' already exists"
        super().__init__(message)


class ValidationError(DomainException):
    """Raised when validation fails."""

    error_code = "VALIDATION_ERROR"


class ConcurrencyConflictError(DomainException):
    """Raised when an optimistic write keeps losing to concurrent writers."""

    error_code = "CONCURRENCY_CONFLICT"
