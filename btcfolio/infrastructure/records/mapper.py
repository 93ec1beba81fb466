from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from btcfolio.core.exceptions import RecordFormatError
from btcfolio.core.models import (
    Direction,
    Future,
    FutureStatus,
    Transaction,
    TransactionType,
    TransferType,
)

# Portuguese labels used by older records
_TRANSACTION_TYPE_ALIASES = {
    "comprar": TransactionType.BUY,
    "buy": TransactionType.BUY,
    "vender": TransactionType.SELL,
    "sell": TransactionType.SELL,
    "transferência": TransactionType.TRANSFER,
    "transferencia": TransactionType.TRANSFER,
    "transfer": TransactionType.TRANSFER,
}

_TRANSFER_TYPE_ALIASES = {
    "entrada": TransferType.IN,
    "in": TransferType.IN,
    "saida": TransferType.OUT,
    "saída": TransferType.OUT,
    "out": TransferType.OUT,
}


def _decimal(value: Any, field: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise RecordFormatError(f"Field '{field}' is not a number: {value!r}")
    if not result.is_finite():
        raise RecordFormatError(f"Field '{field}' is not a finite number: {value!r}")
    return result


def _positive_decimal(value: Any, field: str) -> Decimal:
    result = _decimal(value, field)
    if result <= 0:
        raise RecordFormatError(f"Field '{field}' must be greater than zero: {value!r}")
    return result


def _optional_decimal(value: Any, field: str) -> Optional[Decimal]:
    # Zero and empty prices, fees and leverage mean "not set"
    if value is None or value == "":
        return None
    result = _decimal(value, field)
    return result if result != 0 else None


def _stored_decimal(value: Any, field: str) -> Optional[Decimal]:
    # Realized figures of a closed order: zero is a real value (break-even)
    if value is None or value == "":
        return None
    return _decimal(value, field)


def _datetime(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        if not value:
            raise RecordFormatError(f"Field '{field}' is required")
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise RecordFormatError(f"Field '{field}' is not an ISO date: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_datetime(value: Any, field: str) -> Optional[datetime]:
    if not value:
        return None
    return _datetime(value, field)


def _decimal_to_json(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


class RecordMapper:
    """
    Converts stored rows (plain dicts) to domain models and back.
    Values are sanitised on the way in: enums upper/lower-cased, numbers turned
    into Decimal, dates into UTC datetimes.
    """

    @staticmethod
    def to_transaction(raw: Dict[str, Any]) -> Transaction:
        type_label = str(raw.get("type", "")).strip().lower()
        tx_type = _TRANSACTION_TYPE_ALIASES.get(type_label)
        if tx_type is None:
            raise RecordFormatError(f"Unknown transaction type: {raw.get('type')!r}")

        transfer_type = None
        if raw.get("transfer_type"):
            transfer_type = _TRANSFER_TYPE_ALIASES.get(str(raw["transfer_type"]).strip().lower())
            if transfer_type is None:
                raise RecordFormatError(f"Unknown transfer type: {raw.get('transfer_type')!r}")

        quantity = _decimal(raw.get("quantity"), "quantity")
        if quantity < 0:
            raise RecordFormatError(f"Quantity must not be negative: {quantity}")

        return Transaction(
            id=str(raw.get("id", "")),
            type=tx_type,
            quantity=quantity,
            total_spent=_decimal(raw.get("total_spent"), "total_spent"),
            price_per_coin=_decimal(raw.get("price_per_coin"), "price_per_coin"),
            market=str(raw.get("market") or "USD").upper(),
            date=_datetime(raw.get("date"), "date"),
            fees=_optional_decimal(raw.get("fees"), "fees"),
            notes=raw.get("notes") or None,
            transfer_type=transfer_type,
        )

    @staticmethod
    def to_future(raw: Dict[str, Any]) -> Future:
        try:
            direction = Direction(str(raw.get("direction", "")).upper())
            status = FutureStatus(str(raw.get("status", "")).upper())
        except ValueError as e:
            raise RecordFormatError(f"Invalid future record: {e}")

        leverage = _optional_decimal(raw.get("leverage"), "leverage") or Decimal("1")

        return Future(
            id=str(raw.get("id", "")),
            direction=direction,
            entry_price=_positive_decimal(raw.get("entry_price"), "entry_price"),
            quantity_usd=_positive_decimal(raw.get("quantity_usd"), "quantity_usd"),
            status=status,
            buy_date=_datetime(raw.get("buy_date"), "buy_date"),
            leverage=leverage,
            exit_price=_optional_decimal(raw.get("exit_price"), "exit_price"),
            target_price=_optional_decimal(raw.get("target_price"), "target_price"),
            close_date=_optional_datetime(raw.get("close_date"), "close_date"),
            percent_gain=_stored_decimal(raw.get("percent_gain"), "percent_gain"),
            percent_fee=_stored_decimal(raw.get("percent_fee"), "percent_fee"),
            fees_paid=_stored_decimal(raw.get("fees_paid"), "fees_paid"),
            net_pl_sats=_stored_decimal(raw.get("net_pl_sats"), "net_pl_sats"),
        )

    @staticmethod
    def transaction_to_row(transaction: Transaction) -> Dict[str, Any]:
        return {
            "id": transaction.id,
            "type": transaction.type.value,
            "quantity": str(transaction.quantity),
            "total_spent": str(transaction.total_spent),
            "price_per_coin": str(transaction.price_per_coin),
            "market": transaction.market,
            "date": transaction.date.isoformat(),
            "fees": _decimal_to_json(transaction.fees),
            "notes": transaction.notes,
            "transfer_type": transaction.transfer_type.value if transaction.transfer_type else None,
        }

    @staticmethod
    def future_to_row(future: Future) -> Dict[str, Any]:
        return {
            "id": future.id,
            "direction": future.direction.value,
            "entry_price": str(future.entry_price),
            "quantity_usd": str(future.quantity_usd),
            "status": future.status.value,
            "buy_date": future.buy_date.isoformat(),
            "leverage": str(future.leverage),
            "exit_price": _decimal_to_json(future.exit_price),
            "target_price": _decimal_to_json(future.target_price),
            "close_date": future.close_date.isoformat() if future.close_date else None,
            "percent_gain": _decimal_to_json(future.percent_gain),
            "percent_fee": _decimal_to_json(future.percent_fee),
            "fees_paid": _decimal_to_json(future.fees_paid),
            "net_pl_sats": _decimal_to_json(future.net_pl_sats),
        }
