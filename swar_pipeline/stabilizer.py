"""
Stabilizer: hold-and-decay hysteresis over the displayed note / swar.

Estimation jitter near note transitions would otherwise make the displayed
degree flip several times a second. The stabilizer keeps the last accepted
note and only lets a different one through once a minimum hold has elapsed.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging

from .notes import NoteEstimate
from .swar import (
    Saptak,
    ScaleConfig,
    SwarMode,
    degree_for_offset,
    relative_offset,
    saptak_for_octave,
)


logger = logging.getLogger(__name__)

DEFAULT_HOLD_S = 0.1
DEFAULT_RESET_S = 0.3


@dataclass(frozen=True)
class HeldSwar:
    """The note currently shown, translated against the current scale root."""

    chromatic_index: int
    octave: int
    degree: str
    saptak: Saptak


class Stabilizer:
    """
    Debounces note changes.

    On each valid tick:
    - nothing held yet, the last change is older than the reset window, or
      the timestamp is earlier than the last change: accept the new note and
      restart the clock
    - within the hold window of the last change: keep the held note
    - otherwise: accept the new note if its chromatic index or octave differs

    Invalid ticks never reach update(), so dropouts do not disturb the hold.
    The held note is stored as (chromatic index, octave) and re-translated on
    read, so a root change applies to the held degree immediately.
    """

    def __init__(
        self,
        scale: ScaleConfig,
        mode: SwarMode = "exact",
        hold_s: float = DEFAULT_HOLD_S,
        reset_s: float = DEFAULT_RESET_S,
    ):
        if hold_s < 0 or reset_s < hold_s:
            raise ValueError("Stabilizer windows require 0 <= hold_s <= reset_s")
        self.scale = scale
        self.mode = mode
        self.hold_s = hold_s
        self.reset_s = reset_s
        self.reset()

    def reset(self) -> None:
        """Forget the held note (session start)."""
        self._held: Optional[Tuple[int, int]] = None
        self._last_change: float = 0.0

    @property
    def last_change(self) -> Optional[float]:
        return None if self._held is None else self._last_change

    @property
    def held(self) -> Optional[HeldSwar]:
        if self._held is None:
            return None
        return self._translate(self._held)

    def _translate(self, note: Tuple[int, int]) -> HeldSwar:
        chromatic_index, octave = note
        offset = relative_offset(chromatic_index, self.scale.root_chromatic_index)
        return HeldSwar(
            chromatic_index=chromatic_index,
            octave=octave,
            degree=degree_for_offset(offset, self.mode),
            saptak=saptak_for_octave(octave),
        )

    def _accept(self, candidate: Tuple[int, int], timestamp: float, reason: str) -> None:
        if candidate != self._held:
            logger.debug("Stabilizer %s: %s -> %s at %.3fs", reason, self._held, candidate, timestamp)
        self._held = candidate
        self._last_change = timestamp

    def update(self, note: NoteEstimate, timestamp: float) -> HeldSwar:
        """Feed one valid note; returns the note to display."""
        candidate = (note.chromatic_index, note.octave)

        if self._held is None:
            reason = "initial"
        else:
            elapsed = timestamp - self._last_change
            if elapsed < 0:
                # caller's clock went backwards; the old hold no longer applies
                reason = "clock restart"
            elif elapsed > self.reset_s:
                reason = "reset"
            elif elapsed < self.hold_s or candidate == self._held:
                return self._translate(self._held)
            else:
                reason = "change"

        self._accept(candidate, timestamp, reason)
        return self._translate(candidate)
