from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from retail_pos.application.ports import Clock, Confirmer, Notifier
from retail_pos.config import PosSettings
from retail_pos.domain.state import AppState
from retail_pos.repositories.kv_store import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from retail_pos.repositories.state_repo import StateRepository
from retail_pos.repositories.unit_of_work import StateUnitOfWork
from retail_pos.services.adjustment_service import AdjustmentService
from retail_pos.services.cart_service import Cart
from retail_pos.services.catalog_service import CatalogService
from retail_pos.services.customer_service import CustomerService
from retail_pos.services.excel_service import ExcelService
from retail_pos.services.purchase_service import PurchaseService
from retail_pos.services.reporting_service import ReportingService
from retail_pos.services.returns_service import ReturnsService
from retail_pos.services.sales_service import SalesService


@dataclass(frozen=True)
class AppContainer:
    store: KeyValueStore
    repo: StateRepository
    state: AppState
    settings: PosSettings
    catalog: CatalogService
    cart: Cart
    sales: SalesService
    returns: ReturnsService
    purchases: PurchaseService
    adjustments: AdjustmentService
    customers: CustomerService
    reporting: ReportingService
    excel: ExcelService


def build_container(
    db_path: Path | str | None = None,
    *,
    store: KeyValueStore | None = None,
    settings: PosSettings | None = None,
    confirm: Confirmer | None = None,
    notify: Notifier | None = None,
    clock: Clock | None = None,
) -> AppContainer:
    if store is None:
        if db_path is None:
            store = MemoryKeyValueStore()
        else:
            store = SqliteKeyValueStore(db_path)
            store.init_db()
    settings = settings or PosSettings()

    repo = StateRepository(store)
    state = repo.load()

    def uow_factory():
        return StateUnitOfWork(state, repo)

    catalog = CatalogService(state, uow_factory, confirm=confirm, notify=notify)
    sales = SalesService(state, catalog, settings.tax_rate, uow_factory, confirm=confirm, notify=notify, clock=clock)
    returns = ReturnsService(state, catalog, sales, uow_factory, notify=notify, clock=clock)
    purchases = PurchaseService(state, catalog, uow_factory, confirm=confirm, notify=notify, clock=clock)
    adjustments = AdjustmentService(state, catalog, uow_factory, notify=notify, clock=clock)
    customers = CustomerService(state, uow_factory, confirm=confirm)
    reporting = ReportingService(state, settings.low_stock_threshold)
    excel = ExcelService(catalog, purchases)

    return AppContainer(
        store=store,
        repo=repo,
        state=state,
        settings=settings,
        catalog=catalog,
        cart=Cart(catalog, settings.tax_rate),
        sales=sales,
        returns=returns,
        purchases=purchases,
        adjustments=adjustments,
        customers=customers,
        reporting=reporting,
        excel=excel,
    )
