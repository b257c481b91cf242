import csv
import os
import tempfile
import unittest
from pathlib import Path

from correlator.backend import data_reader
from correlator.backend.data_reader import DatasetError

SCHEMA = {"analyst": "Target Name", "date": "Date"}


def _write_csv(path, header, rows):
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)


class DataReaderTests(unittest.TestCase):
    def setUp(self):
        data_reader._cache.clear()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_remap_rows_renames_and_drops_columns(self):
        rows = [{"Target Name": "Ann Apple", "Date": "12/03/2018", "Extra": "x"},
                {"Target Name": "Bob Baker"}]
        self.assertEqual(data_reader.remap_rows(rows, SCHEMA), [
            {"analyst": "Ann Apple", "date": "12/03/2018"},
            {"analyst": "Bob Baker", "date": None},
        ])

    def test_require_columns_flags_missing_header(self):
        with self.assertRaises(DatasetError) as ctx:
            data_reader.require_columns([{"Target Name": "Ann"}], SCHEMA, "calls.csv")
        self.assertIn("schema_mismatch", str(ctx.exception))
        data_reader.require_columns([], SCHEMA, "calls.csv")

    def test_load_dataset_missing_file(self):
        with self.assertLogs("correlator.backend.data_reader", level="WARNING"):
            with self.assertRaises(DatasetError):
                data_reader.load_dataset(self.tmp / "missing.csv", SCHEMA)

    def test_load_dataset_remaps(self):
        path = self.tmp / "calls.csv"
        _write_csv(path, ["Target Name", "Date", "Talk Time"],
                   [["Ann Apple", "12/03/2018", "00:03:00"]])
        rows = data_reader.load_dataset(path, SCHEMA)
        self.assertEqual(rows, [{"analyst": "Ann Apple", "date": "12/03/2018"}])

    def test_load_dataset_schema_mismatch(self):
        path = self.tmp / "calls.csv"
        _write_csv(path, ["Name", "Date"], [["Ann Apple", "12/03/2018"]])
        with self.assertRaises(DatasetError):
            data_reader.load_dataset(path, SCHEMA)

    def test_cached_rows_reused_until_mtime_changes(self):
        path = self.tmp / "calls.csv"
        _write_csv(path, ["Target Name", "Date"], [["Ann Apple", "12/03/2018"]])
        first, err = data_reader.load_csv(path)
        second, _ = data_reader.load_csv(path)
        self.assertIsNone(err)
        self.assertIs(first, second)

    def test_unreadable_rewrite_serves_stale_rows_but_batch_refuses(self):
        path = self.tmp / "calls.csv"
        _write_csv(path, ["Target Name", "Date"], [["Ann Apple", "12/03/2018"]])
        rows, _ = data_reader.load_csv(path)

        path.write_bytes(b"Target Name,Date\n\xff\xfe,bad\n")
        stat = os.stat(path)
        os.utime(path, (stat.st_atime, stat.st_mtime + 10))

        with self.assertLogs("correlator.backend.data_reader", level="ERROR"):
            stale, err = data_reader.load_csv(path)
        self.assertIs(stale, rows)
        self.assertIn("stale cache", err)
        with self.assertLogs("correlator.backend.data_reader", level="ERROR"):
            with self.assertRaises(DatasetError):
                data_reader.load_dataset(path, SCHEMA)

    def test_file_info_for_missing_file(self):
        info = data_reader.get_file_info(self.tmp / "none.csv")
        self.assertEqual(info, {"exists": False, "mtime": None, "size_bytes": 0})


if __name__ == "__main__":
    unittest.main()
