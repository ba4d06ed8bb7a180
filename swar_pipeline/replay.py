"""
Offline frame source: replays a recording (or a synthetic tone) through a
pipeline at the live tick cadence.

Provides:
- load_audio: Decode a file to mono float samples via librosa
- synthesize_tone: Back-to-back sine segments for testing
- iter_frames: Fixed-size frames at a fixed hop
- run_replay: One table row per tick
- summarize: Ticks per swar degree
"""

from typing import Iterator, Optional, Sequence, Tuple
import os

import numpy as np
import pandas as pd
import librosa

from .pipeline import SwarPipeline


TRACE_COLUMNS = [
    "time",
    "frequency_hz",
    "aperiodicity",
    "note_name",
    "octave",
    "cents_deviation",
    "degree",
    "notation",
    "saptak",
    "clarity_tier",
    "mean_level",
]


def load_audio(audio_path: str, sample_rate: int = 44100) -> Tuple[np.ndarray, int]:
    """Load mono audio resampled to sample_rate."""
    if not os.path.isfile(audio_path):
        raise FileNotFoundError(f"Audio file not found: {audio_path}")
    y, sr = librosa.load(audio_path, sr=sample_rate, mono=True)
    return y.astype(float), int(sr)


def synthesize_tone(
    freqs: Sequence[float],
    seconds: float = 0.5,
    sample_rate: int = 44100,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Concatenate pure sines, one per frequency. A frequency of 0 is silence."""
    n = int(round(seconds * sample_rate))
    t = np.arange(n) / sample_rate
    segments = []
    for f in freqs:
        if f > 0:
            segments.append(amplitude * np.sin(2 * np.pi * f * t))
        else:
            segments.append(np.zeros(n))
    if not segments:
        return np.zeros(0)
    return np.concatenate(segments)


def iter_frames(
    y: np.ndarray,
    frame_size: int = 2048,
    hop_length: int = 2205,
) -> Iterator[Tuple[int, np.ndarray]]:
    """
    Yield (start_sample, frame) pairs. Only whole frames are produced, like a
    capture device that hands over full analyser buffers.
    """
    if frame_size <= 0 or hop_length <= 0:
        raise ValueError("frame_size and hop_length must be positive")
    for start in range(0, len(y) - frame_size + 1, hop_length):
        yield start, y[start:start + frame_size]


def run_replay(
    pipeline: SwarPipeline,
    y: np.ndarray,
    sample_rate: int,
    frame_size: Optional[int] = None,
    hop_length: Optional[int] = None,
) -> pd.DataFrame:
    """
    Push every frame of y through the pipeline, using the frame end time as
    the tick timestamp.

    Returns:
        DataFrame with TRACE_COLUMNS, one row per tick
    """
    cfg = pipeline.config
    frame_size = frame_size or cfg.frame_size
    if hop_length is None:
        hop_length = max(1, int(round(sample_rate * cfg.hop_ms / 1000.0)))

    pipeline.start()
    rows = []
    for start, frame in iter_frames(y, frame_size, hop_length):
        t = (start + frame_size) / float(sample_rate)
        out = pipeline.push_frame(frame, sample_rate, timestamp=t)
        rows.append({
            "time": t,
            "frequency_hz": out.frequency_hz,
            "aperiodicity": pipeline.last_estimate.aperiodicity,
            "note_name": out.note_name,
            "octave": out.octave,
            "cents_deviation": out.cents_deviation,
            "degree": out.degree,
            "notation": out.notation,
            "saptak": out.saptak,
            "clarity_tier": out.clarity_tier,
            "mean_level": float(np.mean(out.audio_levels)) if out.audio_levels else 0.0,
        })
    pipeline.stop()

    return pd.DataFrame(rows, columns=TRACE_COLUMNS)


def summarize(trace: pd.DataFrame) -> pd.DataFrame:
    """Count pitched ticks per degree, most frequent first."""
    pitched = trace[trace["frequency_hz"] > 0]
    if pitched.empty:
        return pd.DataFrame(columns=["degree", "ticks", "share", "clear_share"])

    grouped = pitched.groupby("degree")
    summary = pd.DataFrame({
        "ticks": grouped.size(),
        "clear_share": grouped["clarity_tier"].apply(lambda s: float((s == "Clear").mean())),
    })
    summary["share"] = summary["ticks"] / summary["ticks"].sum()
    summary = summary.reset_index().sort_values("ticks", ascending=False, kind="stable")
    return summary[["degree", "ticks", "share", "clear_share"]].reset_index(drop=True)
