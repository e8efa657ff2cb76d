import sys
import logging
from typing import List, Optional

from csv_io import write_accounts
from payments_engine import PaymentsEngine

USAGE = "Usage: payments-engine <transactions.csv>"


class UsageError(Exception):
    pass


def parse_args(argv: List[str]) -> str:
    """Return the input path from argv (program name first)."""
    if len(argv) < 2:
        raise UsageError("expected a transactions file argument")
    if len(argv) > 2:
        raise UsageError(f"expected one argument, got {len(argv) - 1}")

    filepath = argv[1]
    stem, dot, extension = filepath.rpartition(".")
    # a bare ".csv" has no file name
    if not dot or extension != "csv" or not stem or stem.endswith(("/", "\\")):
        raise UsageError(f"expected a .csv file, got {filepath!r}")
    return filepath


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        filepath = parse_args(sys.argv if argv is None else argv)
    except UsageError as e:
        print(f"{e}\n{USAGE}", file=sys.stderr)
        return 1

    engine = PaymentsEngine()
    accounts = engine.process_file(filepath)
    write_accounts(accounts, sys.stdout)

    print(engine.stats.summary(), file=sys.stderr)
    return 1 if engine.stats.aborted else 0


if __name__ == "__main__":
    sys.exit(main())
