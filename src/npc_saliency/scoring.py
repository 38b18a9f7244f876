"""Score combination: fold weighted cues into one clamped saliency score."""

from __future__ import annotations

from .config import CUE_NAMES
from .cues import CueSet, clip01
from .weights import WeightVector


def compute_score(
    cues: CueSet,
    weights: WeightVector,
    active_cues: tuple[str, ...] = CUE_NAMES,
    average: bool = False,
) -> float:
    """Compute clamp01(Σ w_i · c_i) over the active cues.

    With `average=True` the sum is divided by the number of active cues
    before clamping. The divisor is the same for every object in a frame, so
    it rescales scores without changing which object wins.

    Args:
        cues: Normalized cue values in [0, 1].
        weights: Per-cue weights in [0, 1].
        active_cues: Cue names taking part in the sum.
        average: Use the averaging convention.

    Returns:
        Saliency score in [0, 1].
    """
    total = float(cues.as_array(active_cues) @ weights.as_array(active_cues))
    if average and active_cues:
        total /= len(active_cues)
    return clip01(total)
