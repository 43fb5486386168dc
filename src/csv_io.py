"""
CSV adapters: transaction rows in, account rows out.
"""

import csv
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO, Tuple

from errors import MalformedRecordError
from models import (
    MAX_AMOUNT_DIGITS,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    AccountSnapshot,
    Chargeback,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    TransactionType,
    Withdrawal,
)

FOUR_PLACES = Decimal("0.0001")
OUTPUT_HEADER = ("client", "available", "held", "total", "locked")

_AMOUNT_TYPES = {TransactionType.DEPOSIT: Deposit, TransactionType.WITHDRAWAL: Withdrawal}
_REFERENCE_TYPES = {
    TransactionType.DISPUTE: Dispute,
    TransactionType.RESOLVE: Resolve,
    TransactionType.CHARGEBACK: Chargeback,
}


def read_rows(stream: TextIO) -> Iterator[Tuple[int, Dict[str, str]]]:
    """Yield (line number, row) pairs. csv.Error propagates to the caller."""
    reader = csv.DictReader(stream)
    if reader.fieldnames is not None:
        reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    for row in reader:
        yield reader.line_num, row


def parse_csv_row(row: Dict[str, Optional[str]], line_number: Optional[int] = None) -> Transaction:
    """
    Parse CSV row into a Transaction.

    Raises:
        MalformedRecordError: unknown type, bad or out-of-range ids, bad amount,
            missing amount on a deposit/withdrawal or an amount on a dispute-family row.
    """
    # Extra trailing fields land under the None key; they carry nothing we use.
    normalized = {k: (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized.get("type", "").lower())
    except ValueError:
        raise MalformedRecordError(f"unknown transaction type {normalized.get('type')!r}", row, line_number)

    client_id = _parse_id(normalized, "client", MAX_CLIENT_ID, row, line_number)
    transaction_id = _parse_id(normalized, "tx", MAX_TRANSACTION_ID, row, line_number)
    amount_str = normalized.get("amount", "")

    if transaction_type in _AMOUNT_TYPES:
        if not amount_str:
            raise MalformedRecordError(f"{transaction_type.value} without an amount", row, line_number)
        return _AMOUNT_TYPES[transaction_type](
            client_id=client_id,
            transaction_id=transaction_id,
            amount=parse_amount(amount_str, row, line_number),
        )

    if amount_str:
        raise MalformedRecordError(f"{transaction_type.value} must not carry an amount", row, line_number)
    return _REFERENCE_TYPES[transaction_type](client_id=client_id, transaction_id=transaction_id)


def parse_amount(value: str, row: Optional[Dict[str, Optional[str]]] = None, line_number: Optional[int] = None) -> Decimal:
    """Parse a decimal amount, rounding half-up to four fractional digits."""
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise MalformedRecordError(f"amount {value!r} is not a finite number", row, line_number)
        rounded = amount.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise MalformedRecordError(f"invalid amount {value!r}", row, line_number)
    if rounded.adjusted() >= MAX_AMOUNT_DIGITS:
        raise MalformedRecordError(
            f"amount {value!r} exceeds {MAX_AMOUNT_DIGITS} integer digits", row, line_number
        )
    return rounded


def _parse_id(normalized: Dict[str, str], column: str, maximum: int, row, line_number) -> int:
    value = normalized.get(column, "")
    try:
        parsed = int(value)
    except ValueError:
        raise MalformedRecordError(f"invalid {column} id {value!r}", row, line_number)
    if not 0 <= parsed <= maximum:
        raise MalformedRecordError(f"{column} id {parsed} out of range 0..{maximum}", row, line_number)
    return parsed


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP).normalize()
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


def format_account(account: AccountSnapshot) -> Tuple[str, ...]:
    return (
        str(account.client_id),
        format_decimal(account.available),
        format_decimal(account.held),
        format_decimal(account.available + account.held),
        str(account.locked).lower(),
    )


def write_accounts(accounts: Iterable[AccountSnapshot], stream: TextIO) -> None:
    """Write one row per account, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in sorted(accounts, key=lambda a: a.client_id):
        writer.writerow(format_account(account))
