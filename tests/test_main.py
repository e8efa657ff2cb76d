import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import testgen
from main import UsageError, main, parse_args

PROGRAM = "payments-engine"


class TestParseArgs:
    def test_too_short(self):
        with pytest.raises(UsageError):
            parse_args([PROGRAM])

    def test_too_many(self):
        with pytest.raises(UsageError):
            parse_args([PROGRAM, "a.csv", "b.csv"])

    @pytest.mark.parametrize("path", ["transactions", "transactions.csvs", ".css", " ", "blah", "foo.bar", ".csv", "dir/.csv"])
    def test_not_csv(self, path):
        with pytest.raises(UsageError):
            parse_args([PROGRAM, path])

    @pytest.mark.parametrize("path", ["transactions.csv", "c::/derp.csv", "data/in.put.csv"])
    def test_valid_csv(self, path):
        assert parse_args([PROGRAM, path]) == path


class TestMain:
    def test_writes_snapshot_to_stdout(self, tmp_path, capsys):
        csv_file = tmp_path / "transactions.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ]))

        exit_code = main([PROGRAM, str(csv_file)])

        captured = capsys.readouterr()
        assert exit_code == 0
        assert captured.out == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,0.0000,2.0000,false\n"
        )
        assert "Processed: 4, Failed: 1, Malformed: 0" in captured.err

    def test_usage_error(self, capsys):
        exit_code = main([PROGRAM])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert "Usage:" in captured.err

    def test_missing_file_still_writes_header(self, tmp_path, capsys):
        exit_code = main([PROGRAM, str(tmp_path / "missing.csv")])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == "client,available,held,total,locked\n"


class TestTestgen:
    def test_writes_requested_rows(self, tmp_path, capsys):
        out = tmp_path / "generated.csv"

        assert testgen.main(["payments-testgen", str(out), "25"]) == 0

        lines = out.read_text().splitlines()
        assert lines[0] == "type, client, tx, amount"
        assert len(lines) == 26
        assert sorted(int(line.split(", ")[2]) for line in lines[1:]) == list(range(25))

    def test_bad_count(self, tmp_path, capsys):
        assert testgen.main(["payments-testgen", str(tmp_path / "x.csv"), "many"]) == 1
