import argparse
import sys
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from btcfolio.config.settings import settings
from btcfolio.config.logging import get_logger
from btcfolio.core.exceptions import AppError
from btcfolio.infrastructure.coingecko.client import CoinGeckoClient
from btcfolio.infrastructure.exchange_rate.client import ExchangeRateClient
from btcfolio.infrastructure.records.mapper import RecordMapper
from btcfolio.infrastructure.records.store import FUTURES, TRANSACTIONS, JsonRecordStore
from btcfolio.services.converter import FIELDS, convert_amount
from btcfolio.services.exporter import export_futures, export_transactions, monthly_realized_pl
from btcfolio.services.futures import FuturesService, validate_future_data
from btcfolio.services.number_utils import normalize_decimal_input, validate_decimal_input
from btcfolio.services.portfolio import PortfolioService
from btcfolio.services.report_formatter import ReportFormatter
from btcfolio.services.timezone import format_datetime

logger = get_logger(__name__)


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value}")


def _btc_price(override: Optional[Decimal], currency: str = "USD") -> Decimal:
    if override is not None:
        return override
    return CoinGeckoClient().get_btc_price(currency)


def _usd_brl(override: Optional[Decimal]) -> Decimal:
    if override is not None:
        return override
    return ExchangeRateClient().get_usd_brl()


def cmd_portfolio(args):
    store = JsonRecordStore(args.data)
    transactions = store.list_transactions()
    if not transactions:
        print(ReportFormatter.format_no_records("transactions"))
        return

    currency = args.currency.upper()
    price = _btc_price(args.price, currency)
    rate = _usd_brl(args.rate)

    metrics = PortfolioService.calculate_portfolio_stats(transactions, price, currency, rate)
    gps = [PortfolioService.calculate_transaction_gp(t, price, currency, rate) for t in transactions]

    print(ReportFormatter.format_portfolio_report(metrics, currency, price))
    print()
    print(ReportFormatter.format_transaction_rows(transactions, gps, currency))


def cmd_futures(args):
    store = JsonRecordStore(args.data)
    futures = store.list_futures()
    if not futures:
        print(ReportFormatter.format_no_records("futures orders"))
        return

    price = _btc_price(args.price)
    stats = FuturesService.calculate_futures_stats(futures, price)
    metrics = [FuturesService.calculate_future_metrics(f, price) for f in futures]
    print(ReportFormatter.format_futures_report(stats, futures, metrics))

    if args.monthly:
        print()
        print(ReportFormatter.format_monthly_pl(monthly_realized_pl(futures, price)))


def cmd_add_transaction(args):
    row = {
        "type": args.type,
        "quantity": args.quantity,
        "total_spent": args.total_spent,
        "price_per_coin": args.price_per_coin,
        "market": args.market,
        "fees": args.fees,
        "notes": args.notes,
        "transfer_type": args.transfer_type,
        "date": args.date or datetime.now(timezone.utc).isoformat(),
    }
    saved = JsonRecordStore(args.data).save_transaction(RecordMapper.to_transaction(row))
    print(f"Transaction {saved.id} saved")


def cmd_add_future(args):
    row = {
        "direction": args.direction,
        "entry_price": args.entry_price,
        "quantity_usd": args.quantity_usd,
        "leverage": args.leverage,
        "target_price": args.target_price,
        "status": "OPEN",
        "buy_date": args.buy_date or datetime.now(timezone.utc).isoformat(),
    }
    errors = validate_future_data(row)
    if errors:
        for error in errors:
            print(f"- {error}", file=sys.stderr)
        sys.exit(2)
    saved = JsonRecordStore(args.data).save_future(RecordMapper.to_future(row))
    print(f"Future {saved.id} saved")


def cmd_close_future(args):
    store = JsonRecordStore(args.data)
    future = store.get_future(args.id)
    price = _btc_price(args.price)
    closed = FuturesService.close_future(future, args.net_pl_sats, args.fees_sats, price)
    store.save_future(closed)
    print(
        f"Future {closed.id} closed on {format_datetime(closed.close_date)} "
        f"at an estimated exit price of {closed.exit_price:.2f}"
    )


def cmd_delete(args):
    JsonRecordStore(args.data).delete(args.kind, args.id)
    print(f"Deleted {args.id}")


def cmd_convert(args):
    price = _btc_price(args.price)
    rate = _usd_brl(args.rate)
    values = convert_amount(args.field, args.value, price, rate)
    for field in FIELDS:
        print(f"{field.upper():>4}: {values[field]}")


def cmd_normalize(args):
    if not validate_decimal_input(args.value, args.currency.upper()):
        logger.warning(f"'{args.value}' is not typed in {args.currency.upper()} format")
    print(normalize_decimal_input(args.value, args.currency.upper(), args.decimals))


def cmd_export(args):
    store = JsonRecordStore(args.data)
    if args.kind == TRANSACTIONS:
        path = export_transactions(store.list_transactions(), args.path, args.format)
    else:
        path = export_futures(store.list_futures(), args.path, args.format)
    print(f"Exported to {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="btcfolio", description="BTC portfolio and futures tracker")
    parser.add_argument("--data", default=settings.DATA_FILE, help="Record store JSON file")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p = subparsers.add_parser("portfolio", help="Show holdings, cost basis and gain/loss")
    p.add_argument("--currency", default=settings.DEFAULT_CURRENCY, choices=["USD", "BRL", "usd", "brl"])
    p.add_argument("--price", type=_decimal_arg, help="BTC price in the display currency (skip the feed)")
    p.add_argument("--rate", type=_decimal_arg, help="BRL per USD (skip the feed)")
    p.set_defaults(func=cmd_portfolio)

    p = subparsers.add_parser("futures", help="Show futures orders and P&L")
    p.add_argument("--price", type=_decimal_arg, help="BTC price in USD (skip the feed)")
    p.add_argument("--monthly", action="store_true", help="Add realized P&L per month")
    p.set_defaults(func=cmd_futures)

    p = subparsers.add_parser("add-transaction", help="Record a buy, sell or transfer")
    p.add_argument("type", choices=["Buy", "Sell", "Transfer"])
    p.add_argument("quantity")
    p.add_argument("--total-spent", default="0")
    p.add_argument("--price-per-coin", default="0")
    p.add_argument("--market", default=settings.DEFAULT_CURRENCY)
    p.add_argument("--fees")
    p.add_argument("--notes")
    p.add_argument("--transfer-type", choices=["in", "out"])
    p.add_argument("--date", help="ISO-8601, defaults to now")
    p.set_defaults(func=cmd_add_transaction)

    p = subparsers.add_parser("add-future", help="Open a futures order")
    p.add_argument("direction", choices=["LONG", "SHORT"])
    p.add_argument("entry_price")
    p.add_argument("quantity_usd")
    p.add_argument("--leverage", default="1")
    p.add_argument("--target-price")
    p.add_argument("--buy-date", help="ISO-8601, defaults to now")
    p.set_defaults(func=cmd_add_future)

    p = subparsers.add_parser("close-future", help="Close an open futures order")
    p.add_argument("id")
    p.add_argument("--net-pl-sats", type=_decimal_arg, required=True)
    p.add_argument("--fees-sats", type=_decimal_arg, required=True)
    p.add_argument("--price", type=_decimal_arg, help="BTC price in USD (skip the feed)")
    p.set_defaults(func=cmd_close_future)

    p = subparsers.add_parser("delete", help="Delete a transaction or futures order")
    p.add_argument("kind", choices=[TRANSACTIONS, FUTURES])
    p.add_argument("id")
    p.set_defaults(func=cmd_delete)

    p = subparsers.add_parser("convert", help="Convert between BTC, sats, USD and BRL")
    p.add_argument("field", choices=list(FIELDS))
    p.add_argument("value")
    p.add_argument("--price", type=_decimal_arg, help="BTC price in USD (skip the feed)")
    p.add_argument("--rate", type=_decimal_arg, help="BRL per USD (skip the feed)")
    p.set_defaults(func=cmd_convert)

    p = subparsers.add_parser("normalize", help="Normalize a typed amount")
    p.add_argument("value")
    p.add_argument("--currency", default=settings.DEFAULT_CURRENCY)
    p.add_argument("--decimals", type=int, default=2)
    p.set_defaults(func=cmd_normalize)

    p = subparsers.add_parser("export", help="Export records to CSV or JSON")
    p.add_argument("kind", choices=[TRANSACTIONS, FUTURES])
    p.add_argument("path")
    p.add_argument("--format", default="csv", choices=["csv", "json"])
    p.set_defaults(func=cmd_export)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except AppError as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
