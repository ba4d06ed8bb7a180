# Swar Pipeline Package
"""
Real-time swar tuning core for Hindustani scale practice.

Modules:
- config: Configuration and CLI argument handling
- levels: Level meter bars for the input display
- pitch: YIN pitch estimation
- notes: Frequency to chromatic note / cents
- swar: Chromatic note to swar, saptak and clarity
- stabilizer: Hold-and-decay hysteresis on the displayed swar
- pipeline: Per-tick controller (push_frame / set_scale_root / start / stop)
- replay: Offline replay of recordings and synthetic tones
"""

from .config import TunerConfig, build_cli_parser, create_config, load_config_from_cli, parse_config_from_argv
from .levels import compute_audio_levels
from .notes import CHROMATIC_NOTES, SCALE_ROOT_FREQUENCIES, NoteEstimate, frequency_to_note, parse_scale_root
from .pitch import PitchEstimate, estimate_pitch
from .swar import SWAR_DEGREES, ScaleConfig, SwarResult, classify_clarity, saptak_for_octave, translate_swar
from .stabilizer import HeldSwar, Stabilizer
from .pipeline import StabilizedOutput, SwarPipeline

__version__ = "0.1.0"

__all__ = [
    # Config
    "TunerConfig",
    "build_cli_parser",
    "create_config",
    "load_config_from_cli",
    "parse_config_from_argv",
    # Stages
    "compute_audio_levels",
    "PitchEstimate",
    "estimate_pitch",
    "CHROMATIC_NOTES",
    "SCALE_ROOT_FREQUENCIES",
    "NoteEstimate",
    "frequency_to_note",
    "parse_scale_root",
    "SWAR_DEGREES",
    "ScaleConfig",
    "SwarResult",
    "classify_clarity",
    "saptak_for_octave",
    "translate_swar",
    "HeldSwar",
    "Stabilizer",
    # Controller
    "StabilizedOutput",
    "SwarPipeline",
]
