import logging
from typing import List, Optional, Tuple

from amount import AmountError, AmountOverflowError
from models import (
    AccountView,
    ClientAccount,
    DisputeStatus,
    LedgerInvariantError,
    ProcessingResult,
    StoredTransaction,
    Transaction,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class Ledger:
    """
    Applies transactions to client accounts.

    Every record gets a ProcessingResult; anything other than SUCCESS leaves
    accounts and history exactly as they were. Records must be applied in
    input order since disputes refer back to earlier deposits and withdrawals.
    """

    def __init__(self, state: Optional[StateManager] = None):
        self._state = state if state is not None else StateManager()

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Raises LedgerInvariantError if an account ends up with a negative or
        unrepresentable balance, which the rules below should never allow.
        Anything that is not a Transaction is skipped as MALFORMED_RECORD.
        """
        if not isinstance(transaction, Transaction):
            logger.warning(f"Skipping malformed record {transaction!r}")
            return ProcessingResult.MALFORMED_RECORD

        account = self._state.get_or_create_account(transaction.client_id)

        try:
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    result = self._handle_deposit(account, transaction)
                case TransactionType.WITHDRAWAL:
                    result = self._handle_withdrawal(account, transaction)
                case TransactionType.DISPUTE:
                    result = self._handle_dispute(account, transaction)
                case TransactionType.RESOLVE:
                    result = self._handle_resolve(account, transaction)
                case TransactionType.CHARGEBACK:
                    result = self._handle_chargeback(account, transaction)
        except AmountError as e:
            raise LedgerInvariantError(f"{transaction!r}: {e}") from e

        account.check_invariants()
        return result

    def snapshot(self) -> List[AccountView]:
        """Views of every account referenced so far, ordered by client id."""
        return [account.view() for account in self._state.get_all_accounts()]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._state.get_account(client_id)

    def get_transaction(self, transaction_id: int) -> Optional[StoredTransaction]:
        return self._state.get_transaction(transaction_id)

    def _check_new_funds_transaction(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        kind = transaction.transaction_type.value
        if transaction.amount is None:
            logger.warning(f"{kind.capitalize()} tx {transaction.transaction_id}: missing amount, skipping")
            return ProcessingResult.INVALID_AMOUNT

        if account.locked:
            logger.info(f"{kind.capitalize()} tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        if self._state.has_transaction(transaction.transaction_id):
            logger.info(f"{kind.capitalize()} tx {transaction.transaction_id}: transaction id already used")
            return ProcessingResult.DUPLICATE_TRANSACTION

        return ProcessingResult.SUCCESS

    def _record(self, transaction: Transaction) -> None:
        self._state.store_transaction(
            transaction.transaction_id,
            StoredTransaction(
                transaction_type=transaction.transaction_type,
                client_id=transaction.client_id,
                amount=transaction.amount,
            ),
        )

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_new_funds_transaction(account, transaction)
        if not result.accepted:
            return result

        try:
            # total must stay representable, not just available
            account.total.checked_add(transaction.amount)
            account.credit(transaction.amount)
        except AmountOverflowError as e:
            logger.warning(f"Deposit tx {transaction.transaction_id}: {e}")
            return ProcessingResult.AMOUNT_OVERFLOW

        self._record(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_new_funds_transaction(account, transaction)
        if not result.accepted:
            return result

        if account.available < transaction.amount:
            logger.info(
                f"Withdrawal tx {transaction.transaction_id}: insufficient funds "
                f"(available {account.available}, requested {transaction.amount})"
            )
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._record(transaction)
        return ProcessingResult.SUCCESS

    def _lookup_referenced(
        self, transaction: Transaction
    ) -> Tuple[Optional[StoredTransaction], ProcessingResult]:
        """Find the history entry a dispute, resolve or chargeback points at."""
        kind = transaction.transaction_type.value.capitalize()
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.info(f"{kind} for tx {transaction.transaction_id}: transaction not found")
            return None, ProcessingResult.UNKNOWN_TRANSACTION

        if original.client_id != transaction.client_id:
            logger.warning(
                f"{kind} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {original.client_id}, got {transaction.client_id})"
            )
            return None, ProcessingResult.CLIENT_MISMATCH

        return original, ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._lookup_referenced(transaction)
        if original is None:
            return result

        if original.dispute_status is not DisputeStatus.NONE:
            logger.info(
                f"Dispute for tx {transaction.transaction_id}: cannot dispute, status is {original.dispute_status.value}"
            )
            return ProcessingResult.INVALID_STATE

        if account.available < original.amount:
            logger.info(
                f"Dispute for tx {transaction.transaction_id}: insufficient available funds to hold "
                f"(available {account.available}, disputed {original.amount})"
            )
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.hold(original.amount)
        original.dispute_status = DisputeStatus.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._lookup_referenced(transaction)
        if original is None:
            return result

        if original.dispute_status is not DisputeStatus.DISPUTED:
            logger.info(f"Resolve for tx {transaction.transaction_id}: transaction is not disputed")
            return ProcessingResult.INVALID_STATE

        account.release_hold(original.amount)
        original.dispute_status = DisputeStatus.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._lookup_referenced(transaction)
        if original is None:
            return result

        if original.dispute_status is not DisputeStatus.DISPUTED:
            logger.info(f"Chargeback for tx {transaction.transaction_id}: transaction is not disputed")
            return ProcessingResult.INVALID_STATE

        account.remove_held(original.amount)
        account.locked = True
        original.dispute_status = DisputeStatus.CHARGED_BACK
        return ProcessingResult.SUCCESS
