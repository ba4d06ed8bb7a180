import tempfile
import unittest
from pathlib import Path

import numpy as np
from scipy.io import wavfile

from swar_pipeline.config import TunerConfig
from swar_pipeline.pipeline import SwarPipeline
from swar_pipeline.replay import TRACE_COLUMNS, iter_frames, load_audio, run_replay, summarize, synthesize_tone


SR = 44100


class FrameSourceTests(unittest.TestCase):
    def test_synthesize_tone_lengths_and_silence(self) -> None:
        y = synthesize_tone([440.0, 0.0, 660.0], seconds=0.5, sample_rate=SR)
        self.assertEqual(len(y), 3 * SR // 2)
        self.assertTrue(np.all(y[SR // 2:SR] == 0.0))
        self.assertLessEqual(np.max(np.abs(y)), 0.5)

    def test_iter_frames_yields_whole_frames(self) -> None:
        frames = list(iter_frames(np.arange(10000, dtype=float), frame_size=2048, hop_length=1000))
        self.assertEqual(len(frames), 8)
        self.assertEqual(frames[1][0], 1000)
        self.assertTrue(all(len(f) == 2048 for _, f in frames))

    def test_iter_frames_rejects_bad_sizes(self) -> None:
        with self.assertRaises(ValueError):
            list(iter_frames(np.zeros(10), frame_size=0))


class ReplayTests(unittest.TestCase):
    def test_steady_tone_trace(self) -> None:
        y = synthesize_tone([440.0], seconds=1.0, sample_rate=SR)
        trace = run_replay(SwarPipeline(), y, SR)
        self.assertEqual(list(trace.columns), TRACE_COLUMNS)
        self.assertGreater(len(trace), 10)
        self.assertTrue((trace["degree"] == "Dha").all())
        self.assertTrue((trace["clarity_tier"] == "Clear").all())
        self.assertTrue((trace["aperiodicity"] < 0.15).all())

        summary = summarize(trace)
        self.assertEqual(summary.iloc[0]["degree"], "Dha")
        self.assertAlmostEqual(summary.iloc[0]["share"], 1.0)

    def test_sequence_with_gap(self) -> None:
        y = synthesize_tone([440.0, 0.0, 493.88], seconds=0.5, sample_rate=SR)
        trace = run_replay(SwarPipeline(TunerConfig(scale_root="C")), y, SR)
        pitched = trace[trace["frequency_hz"] > 0]
        self.assertEqual(pitched.iloc[0]["degree"], "Dha")
        self.assertEqual(trace.iloc[-1]["degree"], "Ni")
        silent = trace[trace["frequency_hz"] == 0]
        self.assertFalse(silent.empty)
        # held degree survives the gap
        self.assertTrue(silent["degree"].notna().all())

    def test_summarize_empty_trace(self) -> None:
        trace = run_replay(SwarPipeline(), np.zeros(SR), SR)
        self.assertTrue((trace["frequency_hz"] == 0).all())
        self.assertTrue((trace["aperiodicity"] == 1.0).all())
        self.assertTrue(summarize(trace).empty)

    def test_load_audio_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tone.wav"
            wavfile.write(str(path), SR, synthesize_tone([523.25], 0.5, SR).astype(np.float32))
            y, sr = load_audio(str(path), SR)
            self.assertEqual(sr, SR)
            self.assertEqual(len(y), SR // 2)
            trace = run_replay(SwarPipeline(), y, sr)
            self.assertTrue((trace["degree"] == "Sa").all())

    def test_load_audio_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_audio("/nonexistent/take.wav")


if __name__ == "__main__":
    unittest.main()
