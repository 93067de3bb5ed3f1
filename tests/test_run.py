import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

import run

ROOT = Path(__file__).resolve().parents[1]
CATALOG = ROOT / "data" / "courses.json"
COURSES = ["SC2001", "SC2005", "SC2203", "SC2006", "SC2008"]


class RunTests(unittest.TestCase):
    def run_main(self, *extra):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        out_dir = Path(tmp.name) / "outputs"
        argv = [
            "run.py",
            "--config", str(Path(tmp.name) / "none.yaml"),
            "--catalog", str(CATALOG),
            "--out_dir", str(out_dir),
            "--log-level", "WARNING",
            "--courses", *COURSES,
            *extra,
        ]
        buf = io.StringIO()
        with mock.patch("sys.argv", argv), redirect_stdout(buf):
            run.main()
        return buf.getvalue(), out_dir

    def test_genetic_run_writes_outputs(self):
        output, out_dir = self.run_main("--generations", "3", "--seed", "7")
        self.assertIn("MEJOR HORARIO", output)
        self.assertIn("MON |", output)
        payload = json.loads((out_dir / "best_timetable.json").read_text(encoding="utf-8"))
        self.assertEqual(sorted(payload["indices"]), sorted(COURSES))
        self.assertTrue((out_dir / "history.csv").exists())
        self.assertIn("Resumen: days_with_classes=", output)
        header = (out_dir / "metrics.csv").read_text(encoding="utf-8").splitlines()[0].split(",")
        for column in ("best_score", "days_with_classes", "average_gap", "long_blocks", "early_starts", "late_ends"):
            self.assertIn(column, header)

    def test_exhaustive_run(self):
        output, out_dir = self.run_main("--exhaustive")
        self.assertIn("#1 puntaje=", output)
        self.assertTrue((out_dir / "schedule.csv").exists())
        self.assertFalse((out_dir / "history.csv").exists())


if __name__ == "__main__":
    unittest.main()
