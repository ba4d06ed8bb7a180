"""
Pipeline controller: runs one tick of the tuner per pushed frame.

Per tick: samples -> level meter, and samples -> pitch estimator -> note
mapper -> swar translator -> stabilizer -> StabilizedOutput. The controller
owns the session state (ScaleConfig, Stabilizer) and hands both to the
stages explicitly; there is no module-level mutable state.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union
import logging
import time

import numpy as np

from .config import SWAR_MODES, TunerConfig
from .levels import compute_audio_levels
from .notes import CHROMATIC_NOTES, frequency_to_note
from .pitch import PitchEstimate, estimate_pitch
from .stabilizer import Stabilizer
from .swar import (
    SAPTAK_NAMES,
    ClarityTier,
    Saptak,
    ScaleConfig,
    SwarMode,
    swar_to_notation,
    translate_swar,
)


logger = logging.getLogger(__name__)


@dataclass
class StabilizedOutput:
    """
    Externally visible result of one tick.

    degree, saptak, octave and note_name describe the held note. frequency_hz,
    cents_deviation and clarity_tier describe this tick's estimate, measured
    against its own nearest note, which differs from the held note while a
    change is being held back.
    """

    frequency_hz: float                    # 0 when there is no pitch this tick
    degree: Optional[str]                  # held swar (None before the first pitch)
    saptak: Optional[Saptak]
    octave: Optional[int]
    clarity_tier: Optional[ClarityTier]    # from this tick; last known on no-pitch ticks
    audio_levels: List[int] = field(default_factory=list)
    note_name: Optional[str] = None        # Western name of the held note
    cents_deviation: float = 0.0           # from this tick's nearest note (0 on no-pitch ticks)
    timestamp: float = 0.0

    @property
    def has_pitch(self) -> bool:
        return self.frequency_hz > 0

    @property
    def saptak_name(self) -> Optional[str]:
        return SAPTAK_NAMES.get(self.saptak) if self.saptak else None

    @property
    def notation(self) -> Optional[str]:
        if self.degree is None or self.saptak is None:
            return None
        return swar_to_notation(self.degree, self.saptak)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["has_pitch"] = self.has_pitch
        data["saptak_name"] = self.saptak_name
        data["notation"] = self.notation
        return data


class SwarPipeline:
    """
    Session-scoped tuner core.

    push_frame is synchronous and side-effect free apart from the stabilizer
    hold state; callers serialize ticks. set_scale_root applies from the next
    push_frame.
    """

    def __init__(self, config: Optional[TunerConfig] = None):
        self.config = config or TunerConfig()
        self.scale = ScaleConfig(self.config.scale_root)
        self._mode: SwarMode = self.config.swar_mode  # type: ignore[assignment]
        self.stabilizer = Stabilizer(
            self.scale,
            mode=self._mode,
            hold_s=self.config.hold_s,
            reset_s=self.config.reset_s,
        )
        self._last_clarity: Optional[ClarityTier] = None
        self._running = False
        self.last_estimate: PitchEstimate = PitchEstimate.no_pitch()

    # -------------------------------------------------------------------------
    # Session control
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Begin a session with an empty hold state."""
        self.stabilizer.reset()
        self._last_clarity = None
        self.last_estimate = PitchEstimate.no_pitch()
        self._running = True
        logger.info("Session started (root=%s, mode=%s)", CHROMATIC_NOTES[self.scale_root], self._mode)

    def stop(self) -> None:
        """Advisory only; no device resources are held here."""
        self._running = False
        logger.info("Session stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def scale_root(self) -> int:
        return self.scale.root_chromatic_index

    def set_scale_root(self, root: Union[int, str]) -> int:
        """Set Sa; raises ValueError for invalid roots (never clamps)."""
        return self.scale.set_root(root)

    @property
    def swar_mode(self) -> SwarMode:
        return self._mode

    def set_swar_mode(self, mode: str) -> None:
        if mode not in SWAR_MODES:
            raise ValueError(f"swar_mode must be one of {SWAR_MODES}, got {mode!r}")
        self._mode = mode  # type: ignore[assignment]
        self.stabilizer.mode = self._mode

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def _no_pitch_output(self, levels: List[int], timestamp: float) -> StabilizedOutput:
        held = self.stabilizer.held
        return StabilizedOutput(
            frequency_hz=0.0,
            degree=held.degree if held else None,
            saptak=held.saptak if held else None,
            octave=held.octave if held else None,
            clarity_tier=self._last_clarity,
            audio_levels=levels,
            note_name=CHROMATIC_NOTES[held.chromatic_index] if held else None,
            cents_deviation=0.0,
            timestamp=timestamp,
        )

    def push_frame(
        self,
        samples: Union[Sequence[float], np.ndarray],
        sample_rate: float,
        timestamp: Optional[float] = None,
    ) -> StabilizedOutput:
        """
        Process one frame and return exactly one StabilizedOutput.

        Args:
            samples: Time-domain samples for this tick
            sample_rate: Capture sample rate (Hz)
            timestamp: Tick time in seconds; defaults to time.monotonic()
        """
        ts = time.monotonic() if timestamp is None else float(timestamp)
        x = np.asarray(samples, dtype=float).ravel()
        cfg = self.config

        levels = compute_audio_levels(x, cfg.bar_count)

        estimate = estimate_pitch(
            x,
            sample_rate,
            silence_rms=cfg.silence_rms,
            threshold=cfg.yin_threshold,
            min_freq=cfg.min_freq,
            max_freq=cfg.max_freq,
        )
        self.last_estimate = estimate
        if not estimate.valid:
            return self._no_pitch_output(levels, ts)

        note = frequency_to_note(estimate.frequency_hz, cfg.reference_hz)
        swar = translate_swar(
            note,
            self.scale.root_chromatic_index,
            mode=self._mode,
            clear_cents=cfg.clear_cents,
            approximate_cents=cfg.approximate_cents,
        )
        held = self.stabilizer.update(note, ts)
        self._last_clarity = swar.clarity_tier

        return StabilizedOutput(
            frequency_hz=estimate.frequency_hz,
            degree=held.degree,
            saptak=held.saptak,
            octave=held.octave,
            clarity_tier=swar.clarity_tier,
            audio_levels=levels,
            note_name=CHROMATIC_NOTES[held.chromatic_index],
            cents_deviation=note.cents_deviation,
            timestamp=ts,
        )
