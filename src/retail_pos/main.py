from __future__ import annotations

import logging

from retail_pos.application.container import build_container
from retail_pos.config import get_app_paths, load_settings
from retail_pos.logging_config import setup_logging

log = logging.getLogger(__name__)


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    container = build_container(paths.db_path, settings=load_settings())
    summary = container.reporting.financial_summary()
    log.info(
        "pos_ready products=%s invoices=%s db=%s",
        len(container.state.products), len(container.state.invoices), paths.db_path,
    )

    print(f"Products: {len(container.state.products)}")
    print(f"Low stock: {len(container.reporting.low_stock_products())}")
    print(f"Net revenue: {summary.net_revenue:.2f}")
    print(f"Gross profit: {summary.gross_profit:.2f} ({summary.profit_margin:.1f}%)")
    print(f"Receivables: {summary.receivables:.2f} | Payables: {summary.payables:.2f}")


if __name__ == "__main__":
    main()
