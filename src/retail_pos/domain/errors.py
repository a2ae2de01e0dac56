from __future__ import annotations


class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(ValidationError):
    pass


class EmptyCartError(ValidationError):
    pass


class InsufficientStockError(ValidationError):
    def __init__(self, message: str, product_id: int | None = None, available: int | None = None):
        super().__init__(message)
        self.product_id = product_id
        self.available = available


class OverReturnError(ValidationError):
    def __init__(self, message: str, product_id: int, requested: int, returnable: int):
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
        self.returnable = returnable


class StorageError(AppError):
    pass
