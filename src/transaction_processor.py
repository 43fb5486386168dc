import logging

from errors import (
    AccountLocked,
    ClientMismatch,
    DuplicateTransactionId,
    InvalidAmount,
    UnknownTransaction,
    UnsupportedReference,
    TransactionError,
)
from journal import JournalEntry, TransactionJournal
from ledger import Ledger
from models import MAX_AMOUNT_DIGITS, Chargeback, Deposit, Dispute, Resolve, Transaction, Withdrawal
from settings import LockedAccountPolicy

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions one at a time against the ledger and journal.
    Raises a TransactionError subclass when a transaction is rejected;
    a rejected transaction changes nothing.
    """

    def __init__(
        self,
        ledger: Ledger,
        journal: TransactionJournal,
        locked_account_policy: LockedAccountPolicy = LockedAccountPolicy.FREEZE,
    ):
        self._ledger = ledger
        self._journal = journal
        self._locked_account_policy = locked_account_policy

    def process_transaction(self, transaction: Transaction) -> None:
        try:
            match transaction:
                case Deposit():
                    self._handle_deposit(transaction)
                case Withdrawal():
                    self._handle_withdrawal(transaction)
                case Dispute():
                    entry = self._find_disputable_entry(transaction)
                    next_state = entry.next_state(transaction.transaction_type)
                    self._ledger.hold(transaction.client_id, entry.amount)
                    entry.dispute_state = next_state
                case Resolve():
                    entry = self._find_disputable_entry(transaction)
                    next_state = entry.next_state(transaction.transaction_type)
                    self._ledger.release(transaction.client_id, entry.amount)
                    entry.dispute_state = next_state
                case Chargeback():
                    entry = self._find_disputable_entry(transaction)
                    next_state = entry.next_state(transaction.transaction_type)
                    self._ledger.seize(transaction.client_id, entry.amount)
                    entry.dispute_state = next_state
                    logger.info(f"Client {transaction.client_id}: locked after chargeback of tx {transaction.transaction_id}")
                case _:
                    raise TypeError(f"Unsupported transaction record: {transaction!r}")
        except TransactionError as e:
            if e.transaction is None:
                e.transaction = transaction
            raise

    def _handle_deposit(self, transaction: Deposit) -> None:
        self._check_funds_movement(transaction)
        self._ledger.credit(transaction.client_id, transaction.amount)
        self._journal.record_deposit(transaction)

    def _handle_withdrawal(self, transaction: Withdrawal) -> None:
        self._check_funds_movement(transaction)
        self._ledger.debit(transaction.client_id, transaction.amount)
        self._journal.record_withdrawal(transaction)

    def _check_funds_movement(self, transaction: Deposit | Withdrawal) -> None:
        kind = transaction.transaction_type.value.capitalize()
        account = self._ledger.get_account(transaction.client_id)

        if account is not None and account.locked:
            raise AccountLocked(f"{kind} tx {transaction.transaction_id}: client {transaction.client_id} is locked")

        if transaction.amount <= 0 or transaction.amount.adjusted() >= MAX_AMOUNT_DIGITS:
            raise InvalidAmount(f"{kind} tx {transaction.transaction_id}: invalid amount {transaction.amount}")

        if transaction.transaction_id in self._journal:
            raise DuplicateTransactionId(f"{kind} tx {transaction.transaction_id}: transaction id already used")

    def _find_disputable_entry(self, transaction: Dispute | Resolve | Chargeback) -> JournalEntry:
        """Look up the deposit a dispute-family record refers to, enforcing lock and ownership rules."""
        kind = transaction.transaction_type.value.capitalize()

        if self._locked_account_policy is LockedAccountPolicy.FREEZE:
            account = self._ledger.get_account(transaction.client_id)
            if account is not None and account.locked:
                raise AccountLocked(f"{kind} for tx {transaction.transaction_id}: client {transaction.client_id} is locked")

        entry = self._journal.get_entry(transaction.transaction_id)
        if entry is None:
            if self._journal.is_withdrawal(transaction.transaction_id):
                raise UnsupportedReference(
                    f"{kind} for tx {transaction.transaction_id}: only deposits can be disputed, not withdrawals"
                )
            raise UnknownTransaction(f"{kind} for tx {transaction.transaction_id}: transaction not found")

        if entry.client_id != transaction.client_id:
            raise ClientMismatch(
                f"{kind} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {entry.client_id}, got {transaction.client_id})"
            )

        return entry
