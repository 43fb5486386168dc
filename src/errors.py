from typing import Dict, Optional

from models import Transaction


class PaymentsError(Exception):
    """Base class for every error raised by the payments engine."""


class TransactionError(PaymentsError):
    """
    A single transaction could not be applied.
    The ledger and journal are left exactly as they were before the transaction.
    """

    reason = "rejected"

    def __init__(self, message: str, transaction: Optional[Transaction] = None):
        super().__init__(message)
        self.transaction = transaction


class InvalidAmount(TransactionError):
    reason = "invalid_amount"


class DuplicateTransactionId(TransactionError):
    reason = "duplicate_transaction_id"


class AccountLocked(TransactionError):
    reason = "account_locked"


class InsufficientFunds(TransactionError):
    reason = "insufficient_funds"


class UnknownTransaction(TransactionError):
    reason = "unknown_transaction"


class ClientMismatch(TransactionError):
    reason = "client_mismatch"


class InvalidDisputeState(TransactionError):
    reason = "invalid_dispute_state"


class UnsupportedReference(TransactionError):
    """A dispute, resolve or chargeback referenced a withdrawal."""

    reason = "unsupported_reference"


class MalformedRecordError(PaymentsError):
    """An input row could not be turned into a transaction."""

    reason = "malformed_record"

    def __init__(self, message: str, row: Optional[Dict[str, str]] = None, line_number: Optional[int] = None):
        super().__init__(message)
        self.row = row
        self.line_number = line_number


class IngestionError(PaymentsError):
    """The input source is absent or unreadable. Fatal to the run."""
