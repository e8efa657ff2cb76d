import logging
from typing import Iterable, List, Optional

from csv_io import InputStreamError, read_transactions
from ledger import Ledger
from models import AccountView, ProcessingStats, Transaction

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Folds a stream of transactions through a Ledger, one at a time, in input order.
    """

    def __init__(self, ledger: Optional[Ledger] = None):
        self._ledger = ledger if ledger is not None else Ledger()
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[AccountView]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        return self.process(read_transactions(filepath, self._stats))

    def process(self, transactions: Iterable[Transaction]) -> List[AccountView]:
        """
        Apply every transaction and return the final snapshot.

        If the input stream breaks partway, processing stops there and the
        snapshot covers what was applied before the failure.
        """
        try:
            for transaction in transactions:
                result = self._ledger.apply(transaction)
                self._stats.record(result)
        except InputStreamError as e:
            logger.error(f"Input stream failed, stopping early: {e}")
            self._stats.aborted = True

        logger.info(self._stats.summary())
        return self._ledger.snapshot()
