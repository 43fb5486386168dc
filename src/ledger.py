from decimal import Decimal
from typing import Dict, Iterator, Optional

from errors import InsufficientFunds, InvalidAmount
from models import AccountSnapshot, ClientAccount


class Ledger:
    """
    In-memory mapping from client id to account state.
    Every mutation validates before touching any field, so a failed call
    leaves the account exactly as it was.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Look up an account without creating it."""
        return self._accounts.get(client_id)

    def credit(self, client_id: int, amount: Decimal) -> None:
        if amount <= 0:
            raise InvalidAmount(f"credit amount must be positive, got {amount}")
        self.get_or_create(client_id).available += amount

    def debit(self, client_id: int, amount: Decimal) -> None:
        if amount <= 0:
            raise InvalidAmount(f"debit amount must be positive, got {amount}")

        account = self._accounts.get(client_id)
        available = account.available if account is not None else Decimal("0")
        if available < amount:
            raise InsufficientFunds(
                f"client {client_id}: cannot debit {amount}, only {available} available"
            )
        account.available -= amount

    def hold(self, client_id: int, amount: Decimal) -> None:
        # No floor: available may go negative if funds were already withdrawn.
        account = self.get_or_create(client_id)
        account.available -= amount
        account.held += amount

    def release(self, client_id: int, amount: Decimal) -> None:
        account = self.get_or_create(client_id)
        account.held -= amount
        account.available += amount

    def seize(self, client_id: int, amount: Decimal) -> None:
        account = self.get_or_create(client_id)
        account.held -= amount
        account.locked = True

    def snapshot(self) -> "LedgerSnapshot":
        """Return a restartable view of every account, in insertion order."""
        return LedgerSnapshot(self._accounts)


class LedgerSnapshot:
    """Lazy iterable of AccountSnapshot tuples. Each iteration starts over."""

    def __init__(self, accounts: Dict[int, ClientAccount]):
        self._accounts = accounts

    def __iter__(self) -> Iterator[AccountSnapshot]:
        for account in self._accounts.values():
            yield AccountSnapshot(
                client_id=account.client_id,
                available=account.available,
                held=account.held,
                total=account.total,
                locked=account.locked,
            )

    def __len__(self) -> int:
        return len(self._accounts)
