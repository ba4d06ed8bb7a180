import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

import pandas as pd

import driver
from swar_pipeline.config import parse_config_from_argv


class DriverToneTests(unittest.TestCase):
    def test_tone_mode_writes_trace_and_summary(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = parse_config_from_argv(
                ["tone", "--freqs", "261.63", "293.66", "--seconds", "0.5", "--output", tmpdir]
            )
            buf = io.StringIO()
            with redirect_stdout(buf):
                trace = driver.run_pipeline(config)

            output = buf.getvalue()
            self.assertIn("[STEP 1/3]", output)
            self.assertIn("REPLAY COMPLETE", output)

            trace_path = Path(tmpdir) / "tone_swar_trace.csv"
            summary_path = Path(tmpdir) / "tone_swar_summary.csv"
            self.assertTrue(trace_path.exists())
            self.assertTrue(summary_path.exists())

            saved = pd.read_csv(trace_path)
            self.assertEqual(len(saved), len(trace))
            self.assertEqual(saved["degree"].iloc[0], "Sa")
            self.assertEqual(saved["degree"].iloc[-1], "Re")

            summary = pd.read_csv(summary_path)
            self.assertTrue({"Sa", "Re"} <= set(summary["degree"]))

    def test_silent_tone_skips_summary(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = parse_config_from_argv(["tone", "--freqs", "0", "--output", tmpdir])
            buf = io.StringIO()
            with redirect_stdout(buf):
                driver.run_pipeline(config)
            self.assertIn("[WARN]", buf.getvalue())
            self.assertTrue((Path(tmpdir) / "tone_swar_trace.csv").exists())
            self.assertFalse((Path(tmpdir) / "tone_swar_summary.csv").exists())


if __name__ == "__main__":
    unittest.main()
