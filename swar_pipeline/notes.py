"""
Note mapping: frequency to 12-tone chromatic note, octave, and cents deviation.

Provides:
- NoteEstimate: Chromatic note derived from a valid pitch
- frequency_to_note: Equal-tempered mapping anchored at A4
- parse_scale_root: Note name / index to chromatic index (0-11)
"""

from dataclasses import dataclass
from typing import Dict, Union
import math

import numpy as np
import librosa


# Index 9 = A, the concert-pitch reference in octave 4
CHROMATIC_NOTES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# Octave-4 frequencies for each selectable scale root
SCALE_ROOT_FREQUENCIES: Dict[str, float] = {
    "C": 261.63,
    "C#": 277.18,
    "D": 293.66,
    "D#": 311.13,
    "E": 329.63,
    "F": 349.23,
    "F#": 369.99,
    "G": 392.00,
    "G#": 415.30,
    "A": 440.00,
    "A#": 466.16,
    "B": 493.88,
}

A4_INDEX = 9
A4_OCTAVE = 4


@dataclass(frozen=True)
class NoteEstimate:
    """A chromatic note with its deviation from equal temperament."""

    chromatic_index: int      # 0-11, C = 0
    octave: int               # A4 = octave 4
    cents_deviation: float    # [-50, 50)

    @property
    def name(self) -> str:
        return CHROMATIC_NOTES[self.chromatic_index]

    @property
    def label(self) -> str:
        """Scientific pitch label, e.g. 'A4'."""
        return f"{self.name}{self.octave}"


def frequency_to_note(frequency_hz: float, reference_hz: float = 440.0) -> NoteEstimate:
    """
    Map a frequency onto the nearest equal-tempered note.

    Half steps are counted from the reference A4 and rounded half-up, so the
    cents deviation always lies in [-50, 50).

    Args:
        frequency_hz: Positive, finite frequency in Hz
        reference_hz: Frequency of A4

    Returns:
        NoteEstimate
    """
    if not math.isfinite(frequency_hz) or frequency_hz <= 0:
        raise ValueError(f"frequency must be positive and finite, got {frequency_hz}")

    exact_half_steps = 12.0 * math.log2(frequency_hz / reference_hz)
    rounded_half_steps = int(math.floor(exact_half_steps + 0.5))
    cents = (exact_half_steps - rounded_half_steps) * 100.0

    # python's modulo and floor division are already non-negative / flooring
    chromatic_index = (rounded_half_steps + A4_INDEX) % 12
    octave = (rounded_half_steps + A4_INDEX + 12 * A4_OCTAVE) // 12

    return NoteEstimate(chromatic_index=chromatic_index, octave=octave, cents_deviation=cents)


def note_to_frequency(chromatic_index: int, octave: int, reference_hz: float = 440.0) -> float:
    """Inverse of frequency_to_note for an exactly tuned note."""
    half_steps = (octave - A4_OCTAVE) * 12 + (chromatic_index - A4_INDEX)
    return reference_hz * 2.0 ** (half_steps / 12.0)


def parse_scale_root(root: Union[int, str]) -> int:
    """
    Convert a scale root to a chromatic index (0-11).

    Args:
        root: Chromatic index, digit string, or note name ('C#', 'Db', 'G3')

    Returns:
        Chromatic index 0-11

    Raises:
        ValueError: for anything that is not a valid root. Values are never clamped.
    """
    if isinstance(root, (bool, np.bool_)):
        raise ValueError(f"Invalid scale root: {root!r}")

    if isinstance(root, (int, np.integer)):
        index = int(root)
        if not 0 <= index <= 11:
            raise ValueError(f"Scale root index must be in 0..11, got {index}")
        return index

    if isinstance(root, str):
        text = root.strip()
        if text.isdigit():
            return parse_scale_root(int(text))
        if text:
            try:
                # strip any octave the user supplied; only the pitch class matters
                name = text.rstrip("0123456789-")
                return int(librosa.note_to_midi(name + "4")) % 12
            except Exception as exc:
                raise ValueError(f"Invalid scale root: {root!r}") from exc

    raise ValueError(f"Invalid scale root: {root!r}")
