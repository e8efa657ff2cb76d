"""
Generate a random transactions CSV for load testing the engine.

Transaction ids are shuffled, types are weighted towards deposits and about
half of the rows leave the amount column off entirely, so the output mixes
valid records, rejected records and malformed rows.
"""

import random
import sys
from typing import Iterator, List, Optional

from csv_io import INPUT_FIELDS

DEFAULT_OUTPUT = "test.csv"
DEFAULT_TRANSACTIONS = 50000
DEFAULT_MAX_CLIENT_ID = 10

# deposit appears twice so it is drawn more often
TRANSACTION_TYPES = ["deposit", "withdrawal", "dispute", "resolve", "chargeback", "deposit"]


def generate_rows(
    count: int = DEFAULT_TRANSACTIONS,
    max_client_id: int = DEFAULT_MAX_CLIENT_ID,
    rng: Optional[random.Random] = None,
) -> Iterator[str]:
    rng = rng or random.Random()
    transaction_ids = list(range(count))
    rng.shuffle(transaction_ids)

    for transaction_id in transaction_ids:
        client_id = rng.randrange(max_client_id)
        transaction_type = rng.choice(TRANSACTION_TYPES)
        if rng.random() < 0.5:
            yield f"{transaction_type}, {client_id}, {transaction_id}, {rng.random():.6f}"
        else:
            yield f"{transaction_type}, {client_id}, {transaction_id}"


def write_test_file(path: str, count: int = DEFAULT_TRANSACTIONS, rng: Optional[random.Random] = None) -> None:
    with open(path, "w", newline="") as f:
        f.write(", ".join(INPUT_FIELDS) + "\r\n")
        for row in generate_rows(count, rng=rng):
            f.write(row + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = (sys.argv if argv is None else argv)[1:]
    path = args[0] if args else DEFAULT_OUTPUT
    try:
        count = int(args[1]) if len(args) > 1 else DEFAULT_TRANSACTIONS
    except ValueError:
        print("Usage: payments-testgen [output.csv] [count]", file=sys.stderr)
        return 1

    print(f"Generating {count} transactions into {path}", file=sys.stderr)
    write_test_file(path, count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
