from datetime import datetime, timezone
from decimal import Decimal

import pandas as pd

from btcfolio.core.models import FuturesStats, GPStyle, PortfolioMetrics, TransactionGP
from btcfolio.services.futures import FuturesService
from btcfolio.services.report_formatter import ReportFormatter


def test_format_no_records():
    msg = ReportFormatter.format_no_records("transactions")
    assert "No transactions" in msg


def test_format_portfolio_report():
    metrics = PortfolioMetrics(
        total_btc=Decimal("0.6"),
        total_cost=Decimal("30000"),
        total_revenue=Decimal("25000"),
        net_cost=Decimal("5000"),
        current_value=Decimal("36000"),
        gain_loss=Decimal("30000"),
        avg_cost_basis=Decimal("8333.333"),
    )
    msg = ReportFormatter.format_portfolio_report(metrics, "USD", Decimal("60000"))

    assert "Holdings: 0.60000000 BTC" in msg
    assert "Current value: US$ 36,000.00" in msg
    assert "Average cost basis: US$ 8,333.33" in msg
    assert "Gain/Loss: +US$ 30,000.00" in msg


def test_format_portfolio_report_brl():
    metrics = PortfolioMetrics(
        total_btc=Decimal("1.5"),
        total_cost=Decimal("100000"),
        total_revenue=Decimal("0"),
        net_cost=Decimal("100000"),
        current_value=Decimal("450000"),
        gain_loss=Decimal("-1234.5"),
        avg_cost_basis=Decimal("-66666.67"),
    )
    msg = ReportFormatter.format_portfolio_report(metrics, "BRL", Decimal("300000"))
    assert "Holdings: 1,50000000 BTC" in msg
    assert "Average cost basis: R$ -66.666,67" in msg
    assert "Gain/Loss: R$ -1.234,50" in msg


def test_format_transaction_rows(make_transaction):
    transactions = [
        make_transaction("Buy", "0.1", date=datetime(2024, 1, 15, 12, tzinfo=timezone.utc)),
        make_transaction("Transfer", "0.2", transfer_type="out"),
    ]
    gps = [
        TransactionGP(value=Decimal("990"), style=GPStyle.GAIN),
        TransactionGP(value=Decimal("12000"), style=GPStyle.NEUTRAL),
    ]
    msg = ReportFormatter.format_transaction_rows(transactions, gps, "USD")

    assert "1) 15/01/2024 Buy 0.10000000 BTC ▲ +US$ 990.00" in msg
    assert "2) 15/01/2024 Transfer out 0.20000000 BTC · +US$ 12,000.00" in msg


def test_format_futures_report(make_future):
    now = datetime(2024, 3, 1, tzinfo=timezone.utc)
    futures = [make_future(buy_date=now)]
    price = Decimal("55000")
    stats = FuturesService.calculate_futures_stats(futures, price, now=now)
    metrics = [FuturesService.calculate_future_metrics(f, price, now=now) for f in futures]

    msg = ReportFormatter.format_futures_report(stats, futures, metrics)

    assert "Open: 1  Closed: 0" in msg
    assert "Fees (open): US$ 0.55" in msg
    assert "1) LONG OPEN @ 50000 +9.95% +180,818 sats 0d" in msg


def test_format_futures_report_totals_only():
    stats = FuturesStats(
        total_open_positions=0,
        total_closed_positions=2,
        total_unrealized_pl=Decimal("0"),
        total_realized_pl=Decimal("-12.3"),
        total_fees_usd=Decimal("0"),
        total_pl=Decimal("-12.3"),
    )
    msg = ReportFormatter.format_futures_report(stats)
    assert "Realized P&L: US$ -12.30" in msg
    assert "Total P&L: US$ -12.30" in msg


def test_format_monthly_pl():
    monthly = pd.Series(
        [75.0, -100.0],
        index=pd.to_datetime(["2024-01-31", "2024-02-29"], utc=True),
        name="PnL",
    )
    msg = ReportFormatter.format_monthly_pl(monthly)
    assert "2024-01: +US$ 75.00" in msg
    assert "2024-02: US$ -100.00" in msg

    assert "No closed orders yet" in ReportFormatter.format_monthly_pl(pd.Series(dtype=float))
