import csv
import logging
import sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, TextIO, Union

from csv_io import parse_csv_row, read_rows
from errors import IngestionError, MalformedRecordError, TransactionError
from journal import TransactionJournal
from ledger import Ledger
from models import ClientAccount, ProcessingStats, Transaction
from settings import PaymentsSettings, get_settings
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


@dataclass
class RejectedRecord:
    """A record that was skipped, and why."""

    error: Union[TransactionError, MalformedRecordError]
    transaction: Optional[Transaction] = None
    line_number: Optional[int] = None

    @property
    def reason(self) -> str:
        return self.error.reason


class PaymentsEngine:
    """
    Runs a transaction stream through the processor, strictly in arrival order.
    Per-record failures are logged and collected; only an unreadable source stops the run.
    """

    def __init__(self, settings: Optional[PaymentsSettings] = None):
        self._settings = settings or get_settings()
        self._ledger = Ledger()
        self._journal = TransactionJournal()
        self._processor = TransactionProcessor(
            self._ledger,
            self._journal,
            locked_account_policy=self._settings.locked_account_policy,
        )
        self.stats = ProcessingStats()
        self.rejections: List[RejectedRecord] = []

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        try:
            with open(filepath, "r", newline="") as f:
                self.process_stream(f)
        except OSError as e:
            raise IngestionError(f"Cannot read transactions from {filepath}: {e}") from e

        if self._settings.report_stats:
            print(f"Processed: {self.stats.processed}, Failed: {self.stats.failed}", file=sys.stderr)

        return self.get_accounts()

    def process_stream(self, stream: TextIO) -> None:
        """Parse and apply every CSV row of an open text stream."""
        try:
            for line_number, row in read_rows(stream):
                try:
                    transaction = parse_csv_row(row, line_number)
                except MalformedRecordError as e:
                    self._reject(RejectedRecord(error=e, line_number=line_number))
                    continue
                self._apply(transaction, line_number)
        except (csv.Error, UnicodeDecodeError) as e:
            raise IngestionError(f"Transaction stream is unreadable: {e}") from e

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply already-typed transactions in order and return final account states."""
        for transaction in transactions:
            self._apply(transaction)
        return self.get_accounts()

    def get_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return {
            account.client_id: self._ledger.get_account(account.client_id)
            for account in self._ledger.snapshot()
        }

    def _apply(self, transaction: Transaction, line_number: Optional[int] = None) -> None:
        try:
            self._processor.process_transaction(transaction)
        except TransactionError as e:
            self._reject(RejectedRecord(error=e, transaction=transaction, line_number=line_number))
            return
        self.stats.record_success()

    def _reject(self, rejected: RejectedRecord) -> None:
        self.stats.record_failure(rejected.reason)
        self.rejections.append(rejected)
        where = f"line {rejected.line_number}: " if rejected.line_number is not None else ""
        logger.warning(f"Skipping record ({rejected.reason}): {where}{rejected.error}")
