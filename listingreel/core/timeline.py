"""
Slideshow timing.

Consecutive clips overlap by the fade transition, so clips of durations
d1..dn run sum(d) - (n - 1) * overlap seconds.
"""

from typing import List, Sequence

DEFAULT_CLIP_DURATION = 3.5
TRANSITION_OVERLAP = 0.5


def slideshow_duration(durations: Sequence[float], overlap: float = TRANSITION_OVERLAP) -> float:
    if not durations:
        return 0.0
    return sum(durations) - (len(durations) - 1) * overlap


def clip_start_times(
    durations: Sequence[float],
    offset: float = 0.0,
    overlap: float = TRANSITION_OVERLAP,
) -> List[float]:
    """Start time of each clip, shifted by `offset` (e.g. an intro card)."""
    starts = []
    start = offset
    for duration in durations:
        starts.append(start)
        start += duration - overlap
    return starts
