import json
import os
import uuid
from typing import Any, Dict, List

from btcfolio.config.logging import get_logger
from btcfolio.core.exceptions import BusinessLogicError, DataDestinationError, DataSourceError
from btcfolio.core.models import Future, Transaction
from .mapper import RecordMapper

logger = get_logger(__name__)

TRANSACTIONS = "transactions"
FUTURES = "futures"


class JsonRecordStore:
    """
    File-backed record store for transactions and futures orders.
    Layout: {"transactions": [...rows], "futures": [...rows]}.
    Every mutation rewrites the whole file; lists are personal-finance sized.
    """

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        if not os.path.exists(self.path):
            return {TRANSACTIONS: [], FUTURES: []}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read record store {self.path}: {e}")
            raise DataSourceError(f"Cannot read {self.path}: {e}")
        data.setdefault(TRANSACTIONS, [])
        data.setdefault(FUTURES, [])
        return data

    def _write(self, data: Dict[str, List[Dict[str, Any]]]):
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"Failed to write record store {self.path}: {e}")
            raise DataDestinationError(f"Cannot write {self.path}: {e}")

    def list_transactions(self) -> List[Transaction]:
        """Newest first, like the dashboard table."""
        rows = self._read()[TRANSACTIONS]
        transactions = [RecordMapper.to_transaction(row) for row in rows]
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    def list_futures(self) -> List[Future]:
        rows = self._read()[FUTURES]
        futures = [RecordMapper.to_future(row) for row in rows]
        return sorted(futures, key=lambda f: f.buy_date, reverse=True)

    def get_future(self, record_id: str) -> Future:
        for future in self.list_futures():
            if future.id == record_id:
                return future
        raise BusinessLogicError(f"Future {record_id} not found")

    def _save(self, kind: str, row: Dict[str, Any]) -> Dict[str, Any]:
        data = self._read()
        if not row.get("id"):
            row["id"] = uuid.uuid4().hex
        data[kind] = [r for r in data[kind] if r.get("id") != row["id"]]
        data[kind].append(row)
        self._write(data)
        logger.info(f"Saved {kind[:-1]} {row['id']}")
        return row

    def save_transaction(self, transaction: Transaction) -> Transaction:
        """Insert or replace by id; a missing id gets a fresh one."""
        row = self._save(TRANSACTIONS, RecordMapper.transaction_to_row(transaction))
        return RecordMapper.to_transaction(row)

    def save_future(self, future: Future) -> Future:
        row = self._save(FUTURES, RecordMapper.future_to_row(future))
        return RecordMapper.to_future(row)

    def delete(self, kind: str, record_id: str):
        if kind not in (TRANSACTIONS, FUTURES):
            raise ValueError(f"Unknown record kind: {kind}")
        data = self._read()
        remaining = [r for r in data[kind] if r.get("id") != record_id]
        if len(remaining) == len(data[kind]):
            raise BusinessLogicError(f"Record {record_id} not found in {kind}")
        data[kind] = remaining
        self._write(data)
        logger.info(f"Deleted {kind[:-1]} {record_id}")
