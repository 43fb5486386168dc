from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Set

from errors import InvalidDisputeState
from models import Deposit, TransactionType, Withdrawal


class DisputeState(Enum):
    CLEAN = "clean"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


# (current state, incoming record type) -> next state. Anything missing is invalid.
_TRANSITIONS: Dict[tuple, DisputeState] = {
    (DisputeState.CLEAN, TransactionType.DISPUTE): DisputeState.DISPUTED,
    (DisputeState.DISPUTED, TransactionType.RESOLVE): DisputeState.CLEAN,
    (DisputeState.DISPUTED, TransactionType.CHARGEBACK): DisputeState.CHARGED_BACK,
}


@dataclass
class JournalEntry:
    client_id: int
    amount: Decimal
    dispute_state: DisputeState = DisputeState.CLEAN

    def next_state(self, transaction_type: TransactionType) -> DisputeState:
        """
        Validate a dispute lifecycle transition without applying it.

        Raises:
            InvalidDisputeState: the entry cannot accept this record type in its current state.
        """
        next_state = _TRANSITIONS.get((self.dispute_state, transaction_type))
        if next_state is None:
            raise InvalidDisputeState(
                f"cannot {transaction_type.value} a transaction that is {self.dispute_state.value}"
            )
        return next_state


class TransactionJournal:
    """
    Transaction history for dispute lookups.
    Deposits get a full entry; withdrawals only reserve their id.
    """

    def __init__(self):
        self._entries: Dict[int, JournalEntry] = {}
        self._withdrawal_ids: Set[int] = set()

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries or transaction_id in self._withdrawal_ids

    def __len__(self) -> int:
        return len(self._entries) + len(self._withdrawal_ids)

    def record_deposit(self, deposit: Deposit) -> JournalEntry:
        entry = JournalEntry(client_id=deposit.client_id, amount=deposit.amount)
        self._entries[deposit.transaction_id] = entry
        return entry

    def record_withdrawal(self, withdrawal: Withdrawal) -> None:
        self._withdrawal_ids.add(withdrawal.transaction_id)

    def get_entry(self, transaction_id: int) -> Optional[JournalEntry]:
        return self._entries.get(transaction_id)

    def is_withdrawal(self, transaction_id: int) -> bool:
        return transaction_id in self._withdrawal_ids
