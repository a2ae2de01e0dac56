from .models import (
    CartItem,
    CartTotals,
    CreditNote,
    Customer,
    ExistingProductPurchase,
    FinancialSummary,
    Invoice,
    NewProductPurchase,
    Payment,
    Product,
    PurchaseInvoice,
    PurchaseItem,
    PurchaseLine,
    ReturnedItem,
    SoldItem,
    StockAdjustment,
)
from .errors import (
    AppError,
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    OverReturnError,
    StorageError,
    ValidationError,
)
from .state import AppState

__all__ = [
    "CartItem",
    "CartTotals",
    "CreditNote",
    "Customer",
    "ExistingProductPurchase",
    "FinancialSummary",
    "Invoice",
    "NewProductPurchase",
    "Payment",
    "Product",
    "PurchaseInvoice",
    "PurchaseItem",
    "PurchaseLine",
    "ReturnedItem",
    "SoldItem",
    "StockAdjustment",
    "AppError",
    "EmptyCartError",
    "InsufficientStockError",
    "NotFoundError",
    "OverReturnError",
    "StorageError",
    "ValidationError",
    "AppState",
]
