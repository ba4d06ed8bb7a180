"""
Configuration module for the swar tuning pipeline.

Provides:
- TunerConfig: Dataclass with all pipeline parameters
- build_cli_parser / parse_config_from_argv / load_config_from_cli: CLI handling
- create_config: Programmatic construction
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
import argparse
import os


SWAR_MODES = ("exact", "nearest7")
MODES: List[str] = ["replay", "tone", "serve"]


@dataclass
class TunerConfig:
    """config for the swar tuning pipeline"""

    # scale root (tonic / Sa): note name or chromatic index 0-11
    scale_root: Union[str, int] = "C"

    # "exact" = 12-degree table, "nearest7" = legacy collapse to natural degrees
    swar_mode: str = "exact"

    # Pitch estimation
    silence_rms: float = 0.01       # RMS below this is treated as silence
    yin_threshold: float = 0.15     # Absolute threshold on the normalized difference
    min_freq: float = 200.0         # Instrument working range (Hz)
    max_freq: float = 2200.0
    reference_hz: float = 440.0     # A4

    # Level meter
    bar_count: int = 32

    # Stabilizer windows (milliseconds)
    hold_ms: float = 100.0
    reset_ms: float = 300.0

    # Clarity cutoffs (absolute cents)
    clear_cents: float = 25.0
    approximate_cents: float = 45.0

    # Frame source (replay / tone modes)
    frame_size: int = 2048
    hop_ms: float = 50.0
    sample_rate: int = 44100

    # execution mode
    mode: str = "serve"  # "replay", "tone", or "serve"
    audio_path: Optional[str] = None
    output_dir: str = "swar_results"
    tone_freqs: Optional[List[float]] = None
    tone_seconds: float = 0.5
    host: str = "127.0.0.1"
    port: int = 8765
    verbose: bool = False

    def __post_init__(self):
        """Validate parameters; configuration errors fail loudly."""
        # notes pulls in librosa; imported here only
        from .notes import parse_scale_root

        self.scale_root = parse_scale_root(self.scale_root)

        if self.swar_mode not in SWAR_MODES:
            raise ValueError(f"swar_mode must be one of {SWAR_MODES}, got {self.swar_mode!r}")
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode: {self.mode}")
        if not 0 < self.min_freq < self.max_freq:
            raise ValueError("Frequency range requires 0 < min_freq < max_freq")
        if self.silence_rms < 0:
            raise ValueError("silence_rms must be non-negative")
        if not 0 < self.yin_threshold < 1:
            raise ValueError("yin_threshold must lie in (0, 1)")
        if self.reference_hz <= 0:
            raise ValueError("reference_hz must be positive")
        if self.bar_count < 1:
            raise ValueError("bar_count must be at least 1")
        if self.hold_ms < 0 or self.reset_ms < self.hold_ms:
            raise ValueError("Stabilizer windows require 0 <= hold_ms <= reset_ms")
        if not 0 < self.clear_cents <= self.approximate_cents:
            raise ValueError("Clarity cutoffs require 0 < clear_cents <= approximate_cents")
        if self.frame_size < 2:
            raise ValueError("frame_size must be at least 2")
        if self.hop_ms <= 0:
            raise ValueError("hop_ms must be positive")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")

        if self.mode == "replay":
            if not self.audio_path:
                raise ValueError("Replay mode requires --audio/-a")
            self.audio_path = os.path.abspath(self.audio_path)
            if not os.path.isfile(self.audio_path):
                raise FileNotFoundError(f"Audio file not found: {self.audio_path}")
        if self.mode in ("replay", "tone"):
            self.output_dir = os.path.abspath(self.output_dir)
        if self.mode == "tone":
            if not self.tone_freqs:
                raise ValueError("Tone mode requires --freqs")
            if any(f < 0 for f in self.tone_freqs):
                raise ValueError("Tone frequencies must be >= 0 (0 is a silent segment)")

    @property
    def hold_s(self) -> float:
        return self.hold_ms / 1000.0

    @property
    def reset_s(self) -> float:
        return self.reset_ms / 1000.0

    @property
    def hop_length(self) -> int:
        """Hop in samples at the configured sample rate."""
        return max(1, int(round(self.sample_rate * self.hop_ms / 1000.0)))

    @property
    def filename(self) -> str:
        """Extract filename without extension from audio path."""
        if self.audio_path:
            return os.path.splitext(os.path.basename(self.audio_path))[0]
        return "tone"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--root", "-r", default="C", help="Scale root (Sa), e.g. C, C#, Db or 0-11")
    p.add_argument("--swar-mode", choices=list(SWAR_MODES), default="exact",
                   help="'exact' 12-degree table or legacy 'nearest7' natural degrees")
    p.add_argument("--silence-rms", type=float, default=0.01, help="RMS silence threshold")
    p.add_argument("--yin-threshold", type=float, default=0.15, help="Absolute threshold for the YIN dip search")
    p.add_argument("--min-freq", type=float, default=200.0, help="Lowest accepted pitch (Hz)")
    p.add_argument("--max-freq", type=float, default=2200.0, help="Highest accepted pitch (Hz)")
    p.add_argument("--hold-ms", type=float, default=100.0, help="Minimum hold before a new swar is shown")
    p.add_argument("--reset-ms", type=float, default=300.0, help="Idle window after which any swar is accepted")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def _add_frame_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--output", "-o", default="swar_results", help="Directory for trace CSVs")
    p.add_argument("--frame-size", type=int, default=2048, help="Samples per analysis frame")
    p.add_argument("--hop-ms", type=float, default=50.0, help="Tick cadence in milliseconds")
    p.add_argument("--sample-rate", type=int, default=44100, help="Analysis sample rate (Hz)")


def build_cli_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with replay / tone / serve subcommands."""
    parser = argparse.ArgumentParser(
        description="Swar Tuning Pipeline",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Pipeline mode")

    replay_parser = subparsers.add_parser("replay", help="Run a recording through the tuner tick by tick")
    _add_common_args(replay_parser)
    _add_frame_args(replay_parser)
    replay_parser.add_argument("--audio", "-a", required=True, help="Input audio file")

    tone_parser = subparsers.add_parser("tone", help="Run a synthetic tone sequence through the tuner")
    _add_common_args(tone_parser)
    _add_frame_args(tone_parser)
    tone_parser.add_argument("--freqs", type=float, nargs="+", required=True,
                             help="Tone frequencies (Hz), played back to back")
    tone_parser.add_argument("--seconds", type=float, default=0.5, help="Duration of each tone")

    serve_parser = subparsers.add_parser("serve", help="Serve the frame-push HTTP API")
    _add_common_args(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8765)

    return parser


def _config_from_args(args: argparse.Namespace) -> TunerConfig:
    return TunerConfig(
        scale_root=args.root,
        swar_mode=args.swar_mode,
        silence_rms=args.silence_rms,
        yin_threshold=args.yin_threshold,
        min_freq=args.min_freq,
        max_freq=args.max_freq,
        hold_ms=args.hold_ms,
        reset_ms=args.reset_ms,
        frame_size=getattr(args, "frame_size", 2048),
        hop_ms=getattr(args, "hop_ms", 50.0),
        sample_rate=getattr(args, "sample_rate", 44100),
        mode=args.command,
        audio_path=getattr(args, "audio", None),
        output_dir=getattr(args, "output", "swar_results"),
        tone_freqs=getattr(args, "freqs", None),
        tone_seconds=getattr(args, "seconds", 0.5),
        host=getattr(args, "host", "127.0.0.1"),
        port=getattr(args, "port", 8765),
        verbose=args.verbose,
    )


def parse_config_from_argv(argv: Sequence[str]) -> TunerConfig:
    """Parse an explicit argv list (without program name) into a TunerConfig."""
    parser = build_cli_parser()
    args = parser.parse_args(list(argv))
    if args.command is None:
        parser.error("a mode is required: " + ", ".join(MODES))
    return _config_from_args(args)


def load_config_from_cli() -> TunerConfig:
    """Parse command-line arguments and return configuration."""
    import sys

    return parse_config_from_argv(sys.argv[1:])


def create_config(**kwargs) -> TunerConfig:
    """
    Convenience function to create configuration programmatically.

    Args:
        **kwargs: Override any default configuration values

    Returns:
        TunerConfig instance
    """
    return TunerConfig(**kwargs)
