from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from btcfolio.config.logging import get_logger
from btcfolio.core.exceptions import DataDestinationError
from btcfolio.core.models import Future, FutureStatus, SATS_PER_BTC, Transaction
from btcfolio.services.timezone import format_date

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("csv", "json")


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "Date": format_date(t.date),
            "Type": t.type.value,
            "Quantity (BTC)": float(t.quantity),
            "Total Spent": float(t.total_spent),
            "Price per Coin": float(t.price_per_coin),
            "Market": t.market,
            "Fees": float(t.fees_or_zero),
            "Notes": t.notes or "",
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=[
        "Date", "Type", "Quantity (BTC)", "Total Spent",
        "Price per Coin", "Market", "Fees", "Notes",
    ])


def futures_frame(futures: Sequence[Future]) -> pd.DataFrame:
    rows = [
        {
            "Direction": f.direction.value,
            "Status": f.status.value,
            "Entry Price": float(f.entry_price),
            "Exit Price": _number(f.exit_price),
            "Target Price": _number(f.target_price),
            "Quantity USD": float(f.quantity_usd),
            "Leverage": float(f.leverage),
            "Date": format_date(f.buy_date),
        }
        for f in futures
    ]
    return pd.DataFrame(rows, columns=[
        "Direction", "Status", "Entry Price", "Exit Price",
        "Target Price", "Quantity USD", "Leverage", "Date",
    ])


def _write(df: pd.DataFrame, path: str, fmt: str) -> str:
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    try:
        if fmt == "csv":
            df.to_csv(path, index=False)
        else:
            df.to_json(path, orient="records", indent=2, force_ascii=False)
    except OSError as e:
        logger.error(f"Failed to export to {path}: {e}")
        raise DataDestinationError(f"Export failed: {e}")
    logger.info(f"Exported {len(df)} rows to {path}")
    return path


def export_transactions(transactions: Sequence[Transaction], path: str, fmt: str = "csv") -> str:
    return _write(transactions_frame(transactions), path, fmt)


def export_futures(futures: Sequence[Future], path: str, fmt: str = "csv") -> str:
    return _write(futures_frame(futures), path, fmt)


def monthly_realized_pl(futures: Sequence[Future], btc_price: Decimal) -> pd.Series:
    """
    Realized P&L of CLOSED orders per calendar month, in USD at `btc_price`.
    Orders without a close date are bucketed by their buy date.
    """
    records: List[Dict[str, Any]] = []
    for f in futures:
        if f.status != FutureStatus.CLOSED or f.net_pl_sats is None:
            continue
        records.append({
            "Timestamp": f.close_date or f.buy_date,
            "PnL": float(f.net_pl_sats / SATS_PER_BTC * btc_price),
        })

    if not records:
        return pd.Series(dtype=float, name="PnL")

    df = pd.DataFrame(records)
    df["Timestamp"] = pd.to_datetime(df["Timestamp"], utc=True)
    df.set_index("Timestamp", inplace=True)
    return df["PnL"].resample("ME").sum()
