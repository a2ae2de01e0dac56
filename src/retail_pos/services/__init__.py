from .catalog_service import CatalogService
from .cart_service import Cart
from .sales_service import SalesService
from .returns_service import ReturnsService
from .purchase_service import PurchaseService
from .adjustment_service import AdjustmentService
from .customer_service import CustomerService
from .reporting_service import ReportingService
from .excel_service import ExcelService

__all__ = [
    "CatalogService",
    "Cart",
    "SalesService",
    "ReturnsService",
    "PurchaseService",
    "AdjustmentService",
    "CustomerService",
    "ReportingService",
    "ExcelService",
]
