import csv
import importlib.util
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from correlator.backend import config
from correlator.backend.settings import EngineSettings

_SCRIPT = Path(__file__).resolve().parent.parent / "tools" / "run_correlation.py"
_spec = importlib.util.spec_from_file_location("run_correlation", _SCRIPT)
run_correlation = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(run_correlation)


def _write(path, schema, rows):
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(schema.values()))
        writer.writeheader()
        for row in rows:
            writer.writerow({schema[k]: v for k, v in row.items()})


class RunCorrelationTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.tickets = self.tmp / "tickets.csv"
        self.calls = self.tmp / "calls.csv"
        _write(self.tickets, config.TICKET_SCHEMA, [
            {"id": "T1", "incidentType": "Phone", "analyst": "Ann A",
             "date": "12/03/2018 09:05", "level1": "Travel", "level2": "Air",
             "level3": "Change", "multiple": "", "service": "Agency"},
            {"id": "T2", "incidentType": "Email", "analyst": "Ann A",
             "date": "12/03/2018 09:06", "level1": "Billing", "level2": "",
             "level3": "", "multiple": "", "service": ""},
        ])
        _write(self.calls, config.CALL_SCHEMA, [
            {"analyst": "Ann Apple", "date": "12/03/2018", "time": "09:00:00",
             "duration": "00:03:00", "talk": "00:03:00", "wait": "00:00:05"},
            {"analyst": "Ann Apple", "date": "12/03/2018", "time": "11:00:00",
             "duration": "00:02:00", "talk": "00:02:00", "wait": ""},
        ])
        settings = patch.object(run_correlation, "load_settings", return_value=EngineSettings())
        settings.start()
        self.addCleanup(settings.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def test_writes_joined_csv_and_summary_json(self):
        rc = run_correlation.main(["run_correlation.py", str(self.tickets), str(self.calls)])
        self.assertEqual(rc, 0)

        with open(self.tmp / "calls_with_tickets.csv", encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        self.assertEqual([r["ticketId"] for r in rows], ["T1", ""])
        self.assertEqual([r["level1"] for r in rows], ["Travel", "No Ticket"])

        diag = json.loads((self.tmp / "correlation_summary.json").read_text(encoding="utf-8"))
        self.assertEqual(diag["tickets"], 2)
        self.assertEqual(diag["phone_tickets"], 1)
        self.assertEqual(diag["matched_tickets"], 1)
        self.assertEqual(diag["inbound_with_tickets"], 1)

    def test_summary_file_adds_summary_columns(self):
        summary = self.tmp / "summary.csv"
        with open(summary, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["analyst", "Role", *config.TICKET_SUMMARY_NUMERIC_COLUMNS])
            writer.writerow(["Ann Apple", "GEN", "1", "3", "2", "1.5", "7200"])
        run_correlation.main(["run_correlation.py", str(self.tickets), str(self.calls), str(summary)])

        with open(self.tmp / "calls_with_tickets.csv", encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        self.assertEqual(rows[0]["summary_role"], "GEN")
        self.assertEqual(float(rows[0]["summary_secsPerCall"]), 3600)

    def test_usage_without_arguments(self):
        with patch("builtins.print"):
            self.assertEqual(run_correlation.main(["run_correlation.py"]), 2)

    def test_missing_input_aborts(self):
        with self.assertRaises(SystemExit) as ctx:
            run_correlation.main(["run_correlation.py", str(self.tmp / "none.csv"), str(self.calls)])
        self.assertIn("missing", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
