"""
Swar translation: chromatic note relative to the scale root -> Hindustani degree.

Provides:
- SWAR_DEGREES: The fixed 12-entry degree table (offset from Sa -> name)
- SwarResult: Degree, saptak and clarity for one note
- ScaleConfig: The session's mutable scale root
- translate_swar / classify_clarity / saptak_for_octave
- swar_to_notation: Compact sargam label with octave markers
"""

from dataclasses import dataclass
from typing import Dict, Literal, Tuple, Union
import logging

from .notes import NoteEstimate, parse_scale_root


logger = logging.getLogger(__name__)


# =============================================================================
# DEGREE TABLES
# =============================================================================

# Semitone offset from Sa (0-11) -> degree name
SWAR_DEGREES: Tuple[str, ...] = (
    "Sa",
    "Komal-Re",
    "Re",
    "Komal-Ga",
    "Ga",
    "Ma",
    "Tivra-Ma",
    "Pa",
    "Komal-Dha",
    "Dha",
    "Komal-Ni",
    "Ni",
)

# Compact transcription labels: lowercase = komal, "Ma" = tivra
SWAR_NOTATION: Dict[str, str] = {
    "Sa": "Sa",
    "Komal-Re": "re",
    "Re": "Re",
    "Komal-Ga": "ga",
    "Ga": "Ga",
    "Ma": "ma",
    "Tivra-Ma": "Ma",
    "Pa": "Pa",
    "Komal-Dha": "dha",
    "Dha": "Dha",
    "Komal-Ni": "ni",
    "Ni": "Ni",
}

# Natural (shuddha) degrees used by the legacy seven-degree mode
NATURAL_OFFSETS: Tuple[int, ...] = (0, 2, 4, 5, 7, 9, 11)

SwarMode = Literal["exact", "nearest7"]
Saptak = Literal["Lower", "Middle", "Upper"]
ClarityTier = Literal["Clear", "Approximate", "Unclear"]

SAPTAK_NAMES: Dict[str, str] = {
    "Lower": "Mandra",
    "Middle": "Madhya",
    "Upper": "Taar",
}

DEFAULT_CLEAR_CENTS = 25.0
DEFAULT_APPROXIMATE_CENTS = 45.0


@dataclass(frozen=True)
class SwarResult:
    """Scale degree, register and clarity for one note."""

    degree: str
    saptak: Saptak
    clarity_tier: ClarityTier

    @property
    def notation(self) -> str:
        return swar_to_notation(self.degree, self.saptak)


class ScaleConfig:
    """
    Session scale root (Sa). Written only through set_root; read every tick.

    Invalid roots raise ValueError and leave the current root unchanged.
    """

    def __init__(self, root: Union[int, str] = 0):
        self._root = parse_scale_root(root)

    @property
    def root_chromatic_index(self) -> int:
        return self._root

    def set_root(self, root: Union[int, str]) -> int:
        new_root = parse_scale_root(root)
        if new_root != self._root:
            logger.info("Scale root changed %d -> %d", self._root, new_root)
        self._root = new_root
        return new_root

    def __repr__(self) -> str:
        return f"ScaleConfig(root_chromatic_index={self._root})"


# =============================================================================
# MAPPINGS
# =============================================================================

def relative_offset(chromatic_index: int, root_chromatic_index: int) -> int:
    """Semitones above the root, folded into 0-11."""
    return (chromatic_index - root_chromatic_index) % 12


def nearest_natural_offset(offset: int) -> int:
    """
    Collapse an offset onto the closest natural degree (circular distance).

    Ties go to the lower degree, so komal notes fall back to the swar below.
    """
    best = 0
    best_distance = 12
    for natural in NATURAL_OFFSETS:
        d = abs(offset - natural)
        d = min(d, 12 - d)
        if d < best_distance:
            best_distance = d
            best = natural
    return best


def degree_for_offset(offset: int, mode: SwarMode = "exact") -> str:
    if mode == "nearest7":
        offset = nearest_natural_offset(offset)
    elif mode != "exact":
        raise ValueError(f"Unknown swar mode: {mode}")
    return SWAR_DEGREES[offset % 12]


def saptak_for_octave(octave: int) -> Saptak:
    """Absolute octave -> register: <=3 Lower, 4 Middle, >=5 Upper."""
    if octave <= 3:
        return "Lower"
    if octave == 4:
        return "Middle"
    return "Upper"


def classify_clarity(
    cents_deviation: float,
    clear_cents: float = DEFAULT_CLEAR_CENTS,
    approximate_cents: float = DEFAULT_APPROXIMATE_CENTS,
) -> ClarityTier:
    cents = abs(cents_deviation)
    if cents < clear_cents:
        return "Clear"
    if cents < approximate_cents:
        return "Approximate"
    return "Unclear"


def translate_swar(
    note: NoteEstimate,
    root_chromatic_index: int,
    mode: SwarMode = "exact",
    clear_cents: float = DEFAULT_CLEAR_CENTS,
    approximate_cents: float = DEFAULT_APPROXIMATE_CENTS,
) -> SwarResult:
    """
    Map a note onto its swar relative to the root.

    Args:
        note: Chromatic note from frequency_to_note
        root_chromatic_index: Sa as a chromatic index (0-11)
        mode: 'exact' table lookup, or 'nearest7' legacy collapse
        clear_cents, approximate_cents: Clarity tier cutoffs

    Returns:
        SwarResult
    """
    offset = relative_offset(note.chromatic_index, root_chromatic_index)
    return SwarResult(
        degree=degree_for_offset(offset, mode),
        saptak=saptak_for_octave(note.octave),
        clarity_tier=classify_clarity(note.cents_deviation, clear_cents, approximate_cents),
    )


def swar_to_notation(degree: str, saptak: Saptak = "Middle") -> str:
    """
    Compact label with octave markers, e.g. "ga", "Pa'" (mandra), "Sa·" (taar).
    """
    base = SWAR_NOTATION.get(degree, degree)
    if saptak == "Lower":
        return base + "'"
    if saptak == "Upper":
        return base + "·"
    return base
