"""
Level meter: reduce a sample buffer to a fixed number of display bar heights.
"""

from typing import List, Sequence, Union

import numpy as np


MIN_BAR_HEIGHT = 5
MAX_BAR_GAIN = 50
LEVEL_SCALE = 150.0
DEFAULT_BAR_COUNT = 32


def compute_audio_levels(
    samples: Union[Sequence[float], np.ndarray],
    bar_count: int = DEFAULT_BAR_COUNT,
) -> List[int]:
    """
    Mean absolute amplitude per contiguous segment, scaled to [5, 55].

    Remainder samples that do not fill a whole segment are dropped. Buffers
    shorter than bar_count produce the floor height; NaN segments count as silent.
    """
    x = np.asarray(samples, dtype=float).ravel()
    segment = len(x) // bar_count
    if segment == 0:
        return [MIN_BAR_HEIGHT] * bar_count

    means = np.abs(x[: segment * bar_count]).reshape(bar_count, segment).mean(axis=1)
    means = np.nan_to_num(means, nan=0.0)
    heights = MIN_BAR_HEIGHT + np.minimum(MAX_BAR_GAIN, np.floor(means * LEVEL_SCALE))
    return [int(h) for h in heights]
