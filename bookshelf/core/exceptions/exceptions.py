class AppError(Exception):
    """Base class for all application-level errors."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class DomainError(AppError):
    """Base for domain logic errors."""
    pass


class BadRequestError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class InvalidDetailError(BadRequestError):
    def __init__(self, detail):
        self.detail = detail
        super().__init__(f"invalid detail parameter: {detail!r}, expected 'summary' or 'full'")


class InfrastructureError(AppError):
    """Base for infrastructure-related errors (DB, cache, etc)."""
    pass


class StoreError(InfrastructureError):
    status_code = 503

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        super().__init__(f"Store operation '{operation}' failed: {detail}")


class CacheError(InfrastructureError):
    status_code = 503

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        super().__init__(f"Cache operation '{operation}' failed: {detail}")
