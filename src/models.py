from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Union

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
# Integer digits allowed in a single amount. Keeps every balance well inside
# the 28-digit default decimal context, so sums are never rounded.
MAX_AMOUNT_DIGITS = 15


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


@dataclass(frozen=True)
class Deposit:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type = TransactionType.DEPOSIT

    def __repr__(self) -> str:
        return f"Deposit(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Withdrawal:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type = TransactionType.WITHDRAWAL

    def __repr__(self) -> str:
        return f"Withdrawal(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Dispute:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.DISPUTE

    def __repr__(self) -> str:
        return f"Dispute(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class Resolve:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.RESOLVE

    def __repr__(self) -> str:
        return f"Resolve(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class Chargeback:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.CHARGEBACK

    def __repr__(self) -> str:
        return f"Chargeback(client={self.client_id}, tx={self.transaction_id})"


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held


class AccountSnapshot(NamedTuple):
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ProcessingStats:
    """Counters for a single run, broken down by rejection reason."""

    processed: int = 0
    failed: int = 0
    failures_by_reason: Counter = field(default_factory=Counter)

    def record_success(self) -> None:
        self.processed += 1

    def record_failure(self, reason: str) -> None:
        self.failed += 1
        self.failures_by_reason[reason] += 1
