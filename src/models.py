from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from amount import Amount, AmountError

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class MalformedRecordError(ValueError):
    """Raised when a record cannot be turned into a Transaction."""


class LedgerInvariantError(RuntimeError):
    """An account reached a state the transaction rules should make impossible."""


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeStatus(Enum):
    NONE = "none"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_STATE = "invalid_state"
    INVALID_AMOUNT = "invalid_amount"
    AMOUNT_OVERFLOW = "amount_overflow"
    MALFORMED_RECORD = "malformed_record"

    @property
    def accepted(self) -> bool:
        return self is ProcessingResult.SUCCESS


def _parse_id(name: str, raw: str) -> int:
    # plain ASCII digits; int() alone would also take "1_0" or "+1"
    text = raw.strip() if isinstance(raw, str) else ""
    if not (text.isascii() and text.isdigit()):
        raise MalformedRecordError(f"invalid {name} {raw!r}")
    return int(text)


def _check_id(name: str, value: object, maximum: int) -> None:
    # bool is an int subclass but never a valid id
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedRecordError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= maximum:
        raise MalformedRecordError(f"{name} {value} out of range 0..{maximum}")


@dataclass(frozen=True)
class Transaction:
    """
    One input record. Validated on construction; a deposit or withdrawal
    built without an amount is allowed here and skipped by the ledger.
    """

    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Amount] = None

    def __post_init__(self):
        if not isinstance(self.transaction_type, TransactionType):
            raise MalformedRecordError(f"unknown transaction type {self.transaction_type!r}")
        _check_id("client", self.client_id, MAX_CLIENT_ID)
        _check_id("tx", self.transaction_id, MAX_TRANSACTION_ID)

        if self.amount is None:
            return
        if not isinstance(self.amount, Amount):
            raise MalformedRecordError(f"amount must be an Amount, got {type(self.amount).__name__}")
        if self.transaction_type.carries_amount and self.amount.is_negative():
            raise MalformedRecordError(
                f"{self.transaction_type.value} tx {self.transaction_id}: negative amount {self.amount}"
            )

    @classmethod
    def from_fields(
        cls,
        transaction_type: str,
        client: str,
        transaction_id: str,
        amount: Optional[str] = None,
    ) -> "Transaction":
        """
        Build a validated Transaction from raw text fields.

        Raises MalformedRecordError for unknown types, bad or out of range ids,
        and missing, unparseable or negative amounts on deposits and withdrawals.
        The amount is ignored for dispute, resolve and chargeback.
        """
        try:
            kind = TransactionType(transaction_type.strip().lower())
        except (ValueError, AttributeError) as e:
            raise MalformedRecordError(f"unknown transaction type {transaction_type!r}") from e

        client_id = _parse_id("client", client)
        tx_id = _parse_id("tx", transaction_id)

        parsed_amount = None
        if kind.carries_amount:
            if amount is None or not amount.strip():
                raise MalformedRecordError(f"{kind.value} tx {tx_id}: amount is required")
            try:
                parsed_amount = Amount.parse(amount)
            except AmountError as e:
                raise MalformedRecordError(f"{kind.value} tx {tx_id}: {e}") from e

        # range and sign checks happen in __post_init__
        return cls(
            transaction_type=kind,
            client_id=client_id,
            transaction_id=tx_id,
            amount=parsed_amount,
        )

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class StoredTransaction:
    """History entry kept for every accepted deposit and withdrawal."""

    transaction_type: TransactionType
    client_id: int
    amount: Amount
    dispute_status: DisputeStatus = DisputeStatus.NONE


@dataclass(frozen=True)
class AccountView:
    client_id: int
    available: Amount
    held: Amount
    total: Amount
    locked: bool

    def as_row(self) -> list:
        return [
            str(self.client_id),
            self.available.to_display_string(),
            self.held.to_display_string(),
            self.total.to_display_string(),
            str(self.locked).lower(),
        ]


@dataclass
class ClientAccount:
    client_id: int
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    locked: bool = False

    @property
    def total(self) -> Amount:
        return self.available.checked_add(self.held)

    # Each mutation computes both new balances before assigning,
    # so a failed checked operation leaves the account untouched.

    def credit(self, amount: Amount) -> None:
        self.available = self.available.checked_add(amount)

    def debit(self, amount: Amount) -> None:
        self.available = self.available.checked_sub(amount)

    def hold(self, amount: Amount) -> None:
        available = self.available.checked_sub(amount)
        held = self.held.checked_add(amount)
        self.available, self.held = available, held

    def release_hold(self, amount: Amount) -> None:
        held = self.held.checked_sub(amount)
        available = self.available.checked_add(amount)
        self.available, self.held = available, held

    def remove_held(self, amount: Amount) -> None:
        self.held = self.held.checked_sub(amount)

    def check_invariants(self) -> None:
        if self.available.is_negative() or self.held.is_negative():
            raise LedgerInvariantError(
                f"client {self.client_id}: negative balance (available={self.available}, held={self.held})"
            )
        try:
            self.total
        except AmountError as e:
            raise LedgerInvariantError(f"client {self.client_id}: total is not representable: {e}") from e

    def view(self) -> AccountView:
        return AccountView(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class ProcessingStats:
    """Counters for tracking processing outcomes."""

    def __init__(self):
        self.results: Counter = Counter()
        self.malformed = 0
        self.aborted = False

    @property
    def processed(self) -> int:
        return self.results[ProcessingResult.SUCCESS]

    @property
    def failed(self) -> int:
        return sum(count for result, count in self.results.items() if not result.accepted)

    def record(self, result: ProcessingResult) -> None:
        self.results[result] += 1

    def record_malformed(self) -> None:
        self.malformed += 1

    def summary(self) -> str:
        return f"Processed: {self.processed}, Failed: {self.failed}, Malformed: {self.malformed}"
