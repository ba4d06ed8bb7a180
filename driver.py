#!/usr/bin/env python3
"""
driver file for the swar tuning pipeline

modes:
    replay - run a recording through the tuner tick by tick, save the trace
    tone   - run a synthetic tone sequence through the tuner (sanity check)
    serve  - serve the frame-push HTTP API for a live capture client
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

# add package to path if running directly
if __name__ == "__main__":
    package_dir = Path(__file__).parent
    if str(package_dir) not in sys.path:
        sys.path.insert(0, str(package_dir))

import pandas as pd

from swar_pipeline.config import TunerConfig, load_config_from_cli
from swar_pipeline.notes import CHROMATIC_NOTES
from swar_pipeline.pipeline import SwarPipeline
from swar_pipeline.replay import load_audio, run_replay, summarize, synthesize_tone


def run_pipeline(config: TunerConfig) -> Optional[pd.DataFrame]:
    """
    run the tuner in the configured mode

    - replay: decode the audio file, push fixed frames at the tick cadence
    - tone: same, over a synthesized sine sequence
    - serve: start the HTTP service (blocks)

    args:
        config: pipeline configuration

    outputs:
        per-tick trace DataFrame (replay / tone), None for serve
    """
    print("=" * 60)
    print("SWAR TUNING PIPELINE")
    print(f"MODE: {config.mode.upper()}")
    print("=" * 60)
    print(f"Sa: {CHROMATIC_NOTES[config.scale_root]}  |  Swar mode: {config.swar_mode}")

    if config.mode == "serve":
        return _serve(config)

    print(f"Output: {config.output_dir}")
    print()

    print("[STEP 1/3] Loading signal...")
    if config.mode == "replay":
        y, sr = load_audio(config.audio_path, config.sample_rate)
        print(f"  Audio: {config.filename} ({len(y) / sr:.2f}s @ {sr} Hz)")
    else:
        sr = config.sample_rate
        y = synthesize_tone(config.tone_freqs, config.tone_seconds, sr)
        freqs = ", ".join(f"{f:g}" for f in config.tone_freqs)
        print(f"  Tone: {freqs} Hz, {config.tone_seconds:g}s each")

    print("\n[STEP 2/3] Running ticks...")
    pipeline = SwarPipeline(config)
    trace = run_replay(pipeline, y, sr, config.frame_size, config.hop_length)
    pitched = int((trace["frequency_hz"] > 0).sum()) if not trace.empty else 0
    print(f"  {len(trace)} ticks, {pitched} with pitch")

    print("\n[STEP 3/3] Saving trace...")
    os.makedirs(config.output_dir, exist_ok=True)
    trace_path = os.path.join(config.output_dir, f"{config.filename}_swar_trace.csv")
    trace.to_csv(trace_path, index=False, float_format="%.3f")
    print(f"  Saved: {trace_path}")

    summary = summarize(trace)
    if summary.empty:
        print("  [WARN] No pitched ticks; check input level or --silence-rms")
    else:
        summary_path = os.path.join(config.output_dir, f"{config.filename}_swar_summary.csv")
        summary.to_csv(summary_path, index=False, float_format="%.3f")
        print(f"  Saved: {summary_path}")
        print()
        for _, row in summary.iterrows():
            print(f"  {row['degree']:<10} {int(row['ticks']):>5} ticks  ({row['share']:.0%}, clear {row['clear_share']:.0%})")

    print("\n REPLAY COMPLETE")
    return trace


def _serve(config: TunerConfig) -> None:
    import uvicorn

    from local_app.server import create_app

    print(f"Serving on http://{config.host}:{config.port}")
    uvicorn.run(create_app(default_config=config), host=config.host, port=config.port)
    return None


def main() -> int:
    try:
        config = load_config_from_cli()
    except (ValueError, FileNotFoundError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    run_pipeline(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
