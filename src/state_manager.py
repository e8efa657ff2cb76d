from typing import Dict, List, Optional

from models import ClientAccount, StoredTransaction


class StateManager:
    """
    In-memory store for the ledger.
    Holds client accounts and the history of deposits and withdrawals for dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, StoredTransaction] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = self._accounts[client_id] = ClientAccount(client_id=client_id)
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def store_transaction(self, transaction_id: int, entry: StoredTransaction) -> None:
        """Store transaction for future dispute lookups. Entries are never removed."""
        self._transactions[transaction_id] = entry

    def get_transaction(self, transaction_id: int) -> Optional[StoredTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def get_all_accounts(self) -> List[ClientAccount]:
        """Return all accounts ordered by client id (for final output)."""
        return [self._accounts[client_id] for client_id in sorted(self._accounts)]
