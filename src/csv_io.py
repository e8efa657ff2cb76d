import csv
import logging
from typing import Dict, Iterable, Iterator, Optional, TextIO

from amount import AmountError
from models import AccountView, MalformedRecordError, ProcessingStats, Transaction

logger = logging.getLogger(__name__)

INPUT_FIELDS = ["type", "client", "tx", "amount"]
OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


class InputStreamError(Exception):
    """The transaction file could not be read to the end."""


def parse_csv_row(row: Dict[Optional[str], object]) -> Transaction:
    """Parse CSV row into Transaction. Raises MalformedRecordError."""
    # DictReader puts surplus values under the None key and fills short rows with None
    normalized = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}
    try:
        return Transaction.from_fields(
            transaction_type=normalized["type"],
            client=normalized["client"],
            transaction_id=normalized["tx"],
            amount=normalized.get("amount", ""),
        )
    except KeyError as e:
        raise MalformedRecordError(f"missing column {e}") from e


def read_transactions(filepath: str, stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """
    Lazily read transactions from a CSV file.

    Malformed rows are logged and skipped. Failures of the file itself
    are raised as InputStreamError.
    """
    try:
        with open(filepath, "r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f, skipinitialspace=True)
            for row in reader:
                try:
                    transaction = parse_csv_row(row)
                except (MalformedRecordError, AmountError) as e:
                    logger.warning(f"Line {reader.line_num}: skipping malformed row: {e}")
                    if stats is not None:
                        stats.record_malformed()
                    continue
                yield transaction
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise InputStreamError(f"failed reading {filepath}: {e}") from e


def write_accounts(accounts: Iterable[AccountView], stream: TextIO) -> None:
    csvwriter = csv.writer(stream, lineterminator="\n")
    csvwriter.writerow(OUTPUT_FIELDS)
    for account in accounts:
        csvwriter.writerow(account.as_row())
