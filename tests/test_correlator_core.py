import tempfile
import unittest
from pathlib import Path

import correlator_core
from correlator.backend import config


class CorrelatorCoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _calls_csv(self, header=None):
        header = header or list(config.CALL_SCHEMA.values())
        path = self.tmp / "calls.csv"
        lines = [",".join(header), "Ann Apple,12/03/2018,09:00:00,00:03:00,00:03:00,"]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    def test_missing_file_sets_error(self):
        df = correlator_core.load_dataset_csv(self.tmp / "nope.csv", config.CALL_SCHEMA)
        self.assertTrue(df.empty)
        self.assertIn("missing", df.attrs["error"])

    def test_schema_mismatch_sets_error(self):
        path = self._calls_csv(header=["Name", "Date", "Time", "Duration", "Talk Time", "Wait Time"])
        df = correlator_core.load_dataset_csv(path, config.CALL_SCHEMA)
        self.assertIn("schema_mismatch", df.attrs["error"])

    def test_rows_use_canonical_names_and_keep_blanks(self):
        df = correlator_core.load_dataset_csv(self._calls_csv(), config.CALL_SCHEMA)
        self.assertIsNone(df.attrs["error"])
        rows = correlator_core.frame_to_rows(df, config.CALL_SCHEMA)
        self.assertEqual(rows[0]["analyst"], "Ann Apple")
        self.assertEqual(rows[0]["talk"], "00:03:00")
        self.assertEqual(rows[0]["wait"], "")

    def test_format_duration_human(self):
        self.assertEqual(correlator_core.format_duration_human(3725), "1h 2m 5s")
        self.assertEqual(correlator_core.format_duration_human(0), "0s")
        self.assertEqual(correlator_core.format_duration_human("bad"), "")

    def test_handling_by_classification(self):
        joined = correlator_core.joined_frame([
            {"level1": "Travel", "handleSecs": 300, "handleHours": 300 / 3600, "matchedCount": 1},
            {"level1": "Travel", "handleSecs": 600, "handleHours": 600 / 3600, "matchedCount": 2},
            {"level1": "No Ticket", "handleSecs": 120, "handleHours": 120 / 3600, "matchedCount": 0},
        ])
        summary = correlator_core.handling_by_classification(joined)
        self.assertEqual(list(summary["level1"]), ["Travel", "No Ticket"])
        travel = summary.iloc[0]
        self.assertEqual(travel["calls"], 2)
        self.assertEqual(travel["matched_tickets"], 3)
        self.assertEqual(travel["avg_handle_secs"], 450)
        self.assertEqual(travel["avg_handle_human"], "7m 30s")

    def test_handling_by_classification_empty(self):
        summary = correlator_core.handling_by_classification(correlator_core.joined_frame([]))
        self.assertTrue(summary.empty)

    def test_write_joined_csv(self):
        joined = correlator_core.joined_frame([{"level1": "Travel", "handleSecs": 300}])
        path = correlator_core.write_joined_csv(joined, self.tmp / "out" / "joined.csv")
        self.assertTrue(path.exists())
        self.assertTrue(path.read_text(encoding="utf-8").startswith("level1,handleSecs"))


if __name__ == "__main__":
    unittest.main()
