from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(ROOT / "tests"))

from schedule_fixtures import (
    REGIONAL_SHEET,
    canonical_sheets,
    details_rows,
    regional_rows,
    truncated_sheet_xlsx_bytes,
    xlsx_bytes,
)

CLI = [sys.executable, "-m", "schedule_doctor.cli"]
FIXED_STAMP = "20260301T010203Z"
FIXED_TODAY = "2025-07-15"


def run_cli(*args: str, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged_env = dict(os.environ)
    merged_env["SCHEDULE_DOCTOR_OUTPUT_STAMP"] = FIXED_STAMP
    merged_env["SCHEDULE_DOCTOR_TODAY"] = FIXED_TODAY
    if env:
        merged_env.update(env)
    return subprocess.run(
        [*CLI, *args],
        cwd=ROOT,
        capture_output=True,
        text=True,
        env=merged_env,
    )


def write_workbook(directory: str, name: str, sheets: dict[str, list[list]]) -> Path:
    path = Path(directory) / name
    path.write_bytes(xlsx_bytes(sheets))
    return path


class ScheduleDoctorCliTests(unittest.TestCase):
    def test_extract_writes_record_to_out_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = write_workbook(tmpdir, "jan.xlsx", canonical_sheets())
            out_dir = Path(tmpdir) / "out"
            proc = run_cli("extract", str(workbook), "--out", str(out_dir))
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Record written:", proc.stderr)
            self.assertIn("Contractor: FA123", proc.stderr)
            payload = json.loads((out_dir / "record.json").read_text(encoding="utf-8"))
            self.assertEqual(payload["record"]["month"], "JANUARY")
            self.assertEqual(payload["run_summary"]["command"], "extract")

    def test_extract_json_stdout_contains_only_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = write_workbook(tmpdir, "jan.xlsx", canonical_sheets())
            proc = run_cli("extract", str(workbook), "--json")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            payload = json.loads(proc.stdout)
            self.assertEqual(payload["record"]["netPayment"], 45678.9)
            self.assertEqual(payload["status"], "ok")
            self.assertEqual(proc.stderr.strip(), "")

    def test_extract_infers_year_from_pinned_today(self):
        sheets = canonical_sheets()
        sheets["Pharmacy Details"] = details_rows(month="December")
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = write_workbook(tmpdir, "dec.xlsx", sheets)
            proc = run_cli("extract", str(workbook), "--json")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            payload = json.loads(proc.stdout)
            self.assertEqual(payload["record"]["month"], "DECEMBER")
            self.assertEqual(payload["record"]["year"], 2024)

    def test_extract_default_output_directory_uses_stamp(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = write_workbook(tmpdir, "jan.xlsx", canonical_sheets())
            proc = run_cli("extract", str(workbook), "-q")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            output_dir = ROOT / "schedule-doctor-output" / f"jan-{FIXED_STAMP}"
            try:
                self.assertTrue((output_dir / "record.json").exists())
                self.assertEqual(proc.stderr.strip(), "")
            finally:
                if output_dir.parent.exists():
                    shutil.rmtree(output_dir.parent)

    def test_unrelated_workbook_returns_exit_6(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = write_workbook(tmpdir, "other.xlsx", {"Sheet1": [["name", "amount"], ["a", 1]]})
            proc = run_cli("extract", str(workbook), "--json")
            self.assertEqual(proc.returncode, 6, proc.stderr)
            payload = json.loads(proc.stdout)
            self.assertEqual(payload["status"], "incomplete")
            self.assertEqual(payload["run_summary"]["status"], "incomplete")
            self.assertGreater(payload["run_summary"]["warnings_count"], 0)

    def test_unreadable_input_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            broken = Path(tmpdir) / "corrupt.xlsx"
            broken.write_bytes(b"not really a workbook")
            proc = run_cli("extract", str(broken))
            self.assertEqual(proc.returncode, 2)
            self.assertIn("Could not read workbook", proc.stderr)

    def test_corrupt_worksheet_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            broken = Path(tmpdir) / "truncated.xlsx"
            broken.write_bytes(truncated_sheet_xlsx_bytes(canonical_sheets()))
            proc = run_cli("extract", str(broken), "--json")
            self.assertEqual(proc.returncode, 2, proc.stderr)
            self.assertEqual(proc.stdout.strip(), "")
            self.assertIn("Could not read workbook", proc.stderr)

    def test_missing_file_and_bad_suffix_return_exit_1(self):
        proc = run_cli("extract", "does-not-exist.xlsx")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("File not found", proc.stderr)
        with tempfile.TemporaryDirectory() as tmpdir:
            text = Path(tmpdir) / "schedule.csv"
            text.write_text("a,b\n", encoding="utf-8")
            proc = run_cli("extract", str(text))
            self.assertEqual(proc.returncode, 1)
            self.assertIn("Unsupported file type '.csv'", proc.stderr)

    def test_debug_logs_progress_to_stderr(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = write_workbook(tmpdir, "jan.xlsx", canonical_sheets())
            proc = run_cli("extract", str(workbook), "--json", "--debug")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("schedule_doctor", proc.stderr)
            json.loads(proc.stdout)

    def test_compare_explains_change(self):
        previous_sheets = canonical_sheets()
        current_sheets = canonical_sheets()
        current_sheets["Pharmacy Details"] = details_rows(month="FEBRUARY 2025", net="£46,678.90")
        rows = regional_rows()
        rows[3] = [None, "Smoking Cessation", None, "£1,700.50"]
        rows[-1] = [None, "Sum:", None, 2025.75]
        current_sheets[REGIONAL_SHEET] = rows
        with tempfile.TemporaryDirectory() as tmpdir:
            current = write_workbook(tmpdir, "feb.xlsx", current_sheets)
            previous = write_workbook(tmpdir, "jan.xlsx", previous_sheets)
            proc = run_cli("compare", str(current), str(previous), "--json")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            payload = json.loads(proc.stdout)
            variance = payload["variance"]
            self.assertAlmostEqual(variance["totalDifference"], 1000.0)
            self.assertEqual(variance["primaryFactor"]["name"], "Regional Payments")
            self.assertEqual(variance["regionalPaymentDetails"][0]["description"], "Smoking Cessation")
            self.assertEqual(payload["current"]["month"], "FEBRUARY")
            self.assertEqual(payload["contract"]["name"], "schedule_doctor.compare")

    def test_compare_human_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            current = write_workbook(tmpdir, "feb.xlsx", canonical_sheets())
            previous = write_workbook(tmpdir, "jan.xlsx", canonical_sheets())
            proc = run_cli("compare", str(current), str(previous))
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Net payment change: £0.00", proc.stderr)

    def test_bad_arguments_return_exit_1(self):
        proc = run_cli("extract")
        self.assertEqual(proc.returncode, 1)

    def test_version_subcommand(self):
        proc = run_cli("version")
        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertRegex(proc.stdout.strip(), r"^\d+\.\d+\.\d+$")


if __name__ == "__main__":
    unittest.main()
